"""
Text normalization and tokenization for search
"""

import re
from typing import Iterable, List, Optional

from .config import SearchConfig

_NON_WORD = re.compile(r'[^\w\s]')


class Tokenizer:
    """Turns free text into normalized search tokens"""

    def __init__(self, stop_words: Optional[Iterable[str]] = None, min_length: int = 2):
        self.stop_words = frozenset(stop_words) if stop_words is not None else SearchConfig.STOP_WORDS
        self.min_length = min_length

    def tokenize(self, text: Optional[str]) -> List[str]:
        """
        Tokenize text into search terms

        Order is preserved and duplicates are kept.
        """
        if not text:
            return []

        normalized = _NON_WORD.sub(' ', str(text).lower())

        return [
            token for token in normalized.split()
            if len(token) >= self.min_length and token not in self.stop_words
        ]

    def is_stop_word(self, term: str) -> bool:
        return term in self.stop_words
