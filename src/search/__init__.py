"""
Search module for purchase orders
Tokenization, inverted index, filtering, relevance ranking and suggestions

The SearchEngine facade lives in .engine and is imported from there.
"""

from .tokenizer import Tokenizer
from .indexer import InvertedIndex
from .filters import FilterEngine
from .scoring import RelevanceScorer
from .ranking import ResultRanker
from .suggestions import SuggestionGenerator
from .models import SearchQuery, SearchResult, SearchResponse, SearchFilterCriteria, IndexingStats

__all__ = [
    "Tokenizer",
    "InvertedIndex",
    "FilterEngine",
    "RelevanceScorer",
    "ResultRanker",
    "SuggestionGenerator",
    "SearchQuery",
    "SearchResult",
    "SearchResponse",
    "SearchFilterCriteria",
    "IndexingStats"
]
