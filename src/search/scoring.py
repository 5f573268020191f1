"""
Relevance scoring for purchase order search
Weighted multi-field matching with exact/prefix/substring tiers and boosts
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from .config import SearchConfig
from .models import MatchReason, MatchType, SearchSnippet
from .records import get_field, get_searchable_fields, get_text, to_datetime
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)


class ScoredMatch(BaseModel):
    """Outcome of scoring one record against a phrase"""
    score: float
    match_reasons: List[MatchReason] = []
    snippets: List[SearchSnippet] = []


class RelevanceScorer:
    """
    Scores a record against a search phrase

    Every searchable field carries a weight. The whole phrase earns one tier
    per field (exact, prefix or substring) and every phrase token found in a
    field earns half the field weight on top of that. Recent and urgent
    records are boosted and the total is capped.
    """

    def __init__(
        self,
        field_weights: Optional[Dict[str, float]] = None,
        tokenizer: Optional[Tokenizer] = None,
        recency_boost: float = SearchConfig.RECENCY_BOOST,
        recent_days: int = SearchConfig.RECENT_DAYS,
        urgent_boost: float = SearchConfig.URGENT_BOOST,
        urgent_priority: str = SearchConfig.URGENT_PRIORITY,
        max_score: float = SearchConfig.MAX_SCORE,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.field_weights = field_weights or SearchConfig.get_field_weights()
        self.tokenizer = tokenizer or Tokenizer()
        self.recency_boost = recency_boost
        self.recent_days = recent_days
        self.urgent_boost = urgent_boost
        self.urgent_priority = urgent_priority
        self.max_score = max_score
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def score(self, record: Any, search_phrase: str) -> ScoredMatch:
        """
        Calculate the relevance of a record for a phrase

        Args:
            record: Purchase order record
            search_phrase: Raw phrase typed by the user

        Returns:
            ScoredMatch with score (0 to max_score), match reasons and snippets
        """
        phrase = (search_phrase or "").strip()
        if not phrase:
            return ScoredMatch(score=0.0)

        phrase_lower = phrase.lower()
        tokens = self.tokenizer.tokenize(phrase)
        fields = get_searchable_fields(record)

        score = 0.0
        match_reasons: List[MatchReason] = []
        snippets: List[SearchSnippet] = []

        # Whole phrase, one tier per field
        for field, text in fields.items():
            weight = self.field_weights.get(field, 0)
            text_lower = text.lower()
            if not weight or phrase_lower not in text_lower:
                continue

            if text_lower == phrase_lower:
                multiplier = SearchConfig.EXACT_MULTIPLIER
                match_type = MatchType.EXACT
                confidence = SearchConfig.EXACT_CONFIDENCE
            elif text_lower.startswith(phrase_lower):
                multiplier = SearchConfig.PREFIX_MULTIPLIER
                match_type = MatchType.PARTIAL
                confidence = SearchConfig.PREFIX_CONFIDENCE
            else:
                multiplier = SearchConfig.SUBSTRING_MULTIPLIER
                match_type = MatchType.PARTIAL
                confidence = SearchConfig.SUBSTRING_CONFIDENCE

            score += weight * multiplier
            match_reasons.append(MatchReason(
                field=field,
                match_type=match_type,
                confidence=confidence,
                highlighted_text=highlight_match(text, phrase)
            ))

            snippet = create_search_snippet(text, phrase)
            if snippet:
                snippets.append(SearchSnippet(field=field, snippet=snippet, highlighted=True))

        # Individual tokens, additive with the phrase tiers
        for token in tokens:
            for field, text in fields.items():
                weight = self.field_weights.get(field, 0)
                if weight and token in text.lower():
                    score += weight * SearchConfig.TOKEN_MULTIPLIER

        if score > 0:
            score = self._apply_boosts(record, score)

        return ScoredMatch(
            score=min(self.max_score, score),
            match_reasons=match_reasons,
            snippets=snippets
        )

    def _apply_boosts(self, record: Any, score: float) -> float:
        """Apply recency and priority multipliers"""
        created_at = to_datetime(get_field(record, "created_at"))
        if created_at is not None:
            age = self.clock() - created_at
            if age < timedelta(days=self.recent_days):
                score *= self.recency_boost

        if get_text(record, "priority_level") == self.urgent_priority:
            score *= self.urgent_boost

        return score


def highlight_match(text: str, phrase: str, tag: str = SearchConfig.HIGHLIGHT_TAG) -> str:
    """Wrap every case-insensitive occurrence of phrase in an emphasis tag"""
    if not text or not phrase:
        return text
    pattern = re.compile(re.escape(phrase), re.IGNORECASE)
    return pattern.sub(lambda m: f"<{tag}>{m.group(0)}</{tag}>", text)


def create_search_snippet(
    text: str,
    phrase: str,
    max_length: int = SearchConfig.SNIPPET_LENGTH,
    context: int = SearchConfig.SNIPPET_CONTEXT
) -> Optional[str]:
    """
    Cut a window of text around the first occurrence of phrase

    Ellipses mark truncated ends; the result never exceeds max_length.
    """
    if not text or not phrase:
        return None

    match = re.search(re.escape(phrase), text, re.IGNORECASE)
    if match is None:
        return None

    start = max(0, match.start() - context)
    end = min(len(text), match.end() + context)

    snippet = text[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."

    return snippet[:max_length]
