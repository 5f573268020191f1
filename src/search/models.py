"""
Search-related data models for purchase order search
"""

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr, field_validator
from typing import Any, List, Optional, Union
from datetime import datetime, timezone
from enum import Enum
import uuid

from .records import to_datetime


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class FilterOperator(str, Enum):
    """Operators supported by custom field filters"""
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    BETWEEN = "between"


class MatchType(str, Enum):
    EXACT = "EXACT"
    PARTIAL = "PARTIAL"
    FUZZY = "FUZZY"
    SEMANTIC = "SEMANTIC"


class SortField(str, Enum):
    RELEVANCE = "RELEVANCE"
    DATE = "DATE"
    AMOUNT = "AMOUNT"
    SUPPLIER = "SUPPLIER"
    STATUS = "STATUS"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class SearchSource(str, Enum):
    MANUAL = "MANUAL"
    SUGGESTION = "SUGGESTION"
    SAVED_FILTER = "SAVED_FILTER"


class SuggestionType(str, Enum):
    TERM = "TERM"
    FILTER = "FILTER"
    SUPPLIER = "SUPPLIER"
    CUSTOMER = "CUSTOMER"
    STATUS = "STATUS"


class ValueRange(BaseModel):
    """Inclusive bounds used by the `between` operator"""
    low: Any
    high: Any


FilterValue = Union[ValueRange, StrictBool, StrictInt, StrictFloat, datetime, StrictStr, None]


class CustomFilter(BaseModel):
    """A (field path, operator, value) rule; unknown operators never match"""
    field: str
    operator: str
    value: FilterValue = None

    @field_validator('value', mode='before')
    @classmethod
    def pair_to_range(cls, v):
        if isinstance(v, (list, tuple)):
            if len(v) == 2:
                return ValueRange(low=v[0], high=v[1])
            return None
        return v


class DateRange(BaseModel):
    start: datetime
    end: datetime

    @field_validator('start', 'end')
    @classmethod
    def assume_utc(cls, v):
        return to_datetime(v)


class AmountRange(BaseModel):
    min: float
    max: float


class SearchFilterCriteria(BaseModel):
    """Structured predicate bundle, all parts combined with AND"""
    text_search: Optional[str] = None
    suppliers: List[str] = []
    statuses: List[str] = []
    priorities: List[str] = []
    customers: List[str] = []
    date_range: Optional[DateRange] = None
    amount_range: Optional[AmountRange] = None
    custom_filters: List[CustomFilter] = []


class SavedSearchFilter(BaseModel):
    """Named, reusable filter preset"""
    id: str = Field(default_factory=new_id)
    name: str
    description: Optional[str] = None
    user_id: str
    is_public: bool = False
    is_default: bool = False
    filters: SearchFilterCriteria = Field(default_factory=SearchFilterCriteria)
    tags: List[str] = []
    usage_count: int = 0
    last_used: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator('last_used', 'created_at', 'updated_at')
    @classmethod
    def assume_utc(cls, v):
        # Stored documents may carry naive timestamps
        return to_datetime(v)


class SavedSearchFilterCreate(BaseModel):
    """Model for creating a saved filter"""
    name: str
    description: Optional[str] = None
    user_id: Optional[str] = None
    is_public: bool = False
    is_default: bool = False
    filters: SearchFilterCriteria = Field(default_factory=SearchFilterCriteria)
    tags: List[str] = []


class SavedSearchFilterUpdate(BaseModel):
    """Model for updating a saved filter; only set fields are applied"""
    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None
    is_default: Optional[bool] = None
    filters: Optional[SearchFilterCriteria] = None
    tags: Optional[List[str]] = None


class SearchHistoryEntry(BaseModel):
    """One executed search, kept for suggestions and statistics"""
    id: str = Field(default_factory=new_id)
    user_id: str
    search_term: str = ""
    filters: SearchFilterCriteria = Field(default_factory=SearchFilterCriteria)
    result_count: int = 0
    search_duration: float = 0.0  # milliseconds
    selected_results: List[str] = []
    timestamp: datetime = Field(default_factory=utc_now)
    source: SearchSource = SearchSource.MANUAL

    @field_validator('timestamp')
    @classmethod
    def assume_utc(cls, v):
        return to_datetime(v)


class MatchReason(BaseModel):
    field: str
    match_type: MatchType
    confidence: float
    highlighted_text: Optional[str] = None


class SearchSnippet(BaseModel):
    field: str
    snippet: str
    highlighted: bool = True


class SearchResult(BaseModel):
    """Search result with ranking information"""
    record: Any
    relevance_score: float
    match_reasons: List[MatchReason] = []
    search_snippets: List[SearchSnippet] = []


class SearchSuggestion(BaseModel):
    type: SuggestionType
    value: str
    label: str
    description: Optional[str] = None
    confidence: float
    usage_frequency: float = 0
    last_used: Optional[datetime] = None

    @property
    def rank_weight(self) -> float:
        return self.confidence * 100 + self.usage_frequency


class SearchQuery(BaseModel):
    """Search query with text, filters, sorting and pagination"""
    text_search: Optional[str] = None
    filters: Optional[SearchFilterCriteria] = None
    sort_by: str = SortField.RELEVANCE.value
    sort_direction: str = SortDirection.DESC.value
    limit: Optional[int] = None
    offset: int = 0
    source: SearchSource = SearchSource.MANUAL


class SearchResponse(BaseModel):
    results: List[SearchResult]
    total_count: int
    search_duration: float  # milliseconds
    suggestions: List[SearchSuggestion] = []
    applied_filters: List[str] = []
    history_id: Optional[str] = None


class TermCount(BaseModel):
    term: str
    count: int


class FilterUsage(BaseModel):
    name: str
    usage_count: int


class SearchStatistics(BaseModel):
    total_searches: int
    average_search_time: float
    most_popular_terms: List[TermCount] = []
    most_used_filters: List[FilterUsage] = []
    search_success_rate: float
    saved_filters_count: int


class IndexingStats(BaseModel):
    """Statistics for indexing operations"""
    total_records: int
    indexed_records: int
    failed_records: int
    token_count: int
    processing_time: float
    errors: List[str] = []
