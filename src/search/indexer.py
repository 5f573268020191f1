"""
Inverted index for purchase order search
Maps normalized tokens to the set of record identifiers containing them
"""

import logging
import threading
import time
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from .models import IndexingStats
from .records import extract_searchable_text, get_record_id
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)


class InvertedIndex:
    """
    Token -> record id index with incremental maintenance

    Writers are serialized by a lock and publish a fresh mapping on every
    mutation; readers grab the current mapping reference and never see a
    partially applied add, remove or rebuild.
    """

    def __init__(self, tokenizer: Optional[Tokenizer] = None):
        """Initialize an empty index"""
        self.tokenizer = tokenizer or Tokenizer()
        self._postings: Dict[str, FrozenSet[str]] = {}
        self._documents: Dict[str, FrozenSet[str]] = {}
        self._write_lock = threading.Lock()

    def extract_tokens(self, record: Any) -> List[str]:
        """Tokenize the searchable text of a record"""
        return self.tokenizer.tokenize(extract_searchable_text(record))

    def rebuild(self, records: Iterable[Any]) -> IndexingStats:
        """
        Clear the index and index every record again

        Args:
            records: Snapshot of records to index

        Returns:
            IndexingStats with processing results
        """
        start_time = time.time()
        postings: Dict[str, set] = {}
        documents: Dict[str, FrozenSet[str]] = {}
        stats = IndexingStats(
            total_records=0,
            indexed_records=0,
            failed_records=0,
            token_count=0,
            processing_time=0.0,
            errors=[]
        )

        for record in records:
            stats.total_records += 1
            record_id = get_record_id(record)
            if record_id is None:
                stats.failed_records += 1
                stats.errors.append(f"Record #{stats.total_records} has no id")
                continue

            tokens = frozenset(self.extract_tokens(record))
            documents[record_id] = documents.get(record_id, frozenset()) | tokens
            for token in tokens:
                postings.setdefault(token, set()).add(record_id)
            stats.indexed_records += 1

        with self._write_lock:
            self._postings = {token: frozenset(ids) for token, ids in postings.items()}
            self._documents = documents

        stats.token_count = len(postings)
        stats.processing_time = time.time() - start_time

        logger.info(
            f"Search index built: {stats.token_count} terms indexing "
            f"{stats.indexed_records} records ({stats.processing_time:.3f}s)"
        )
        if stats.failed_records:
            logger.warning(f"Skipped {stats.failed_records} records without an id")

        return stats

    def add(self, record: Any) -> bool:
        """
        Index a single record without a full rebuild

        Returns:
            True if the record was indexed, False if it has no id
        """
        record_id = get_record_id(record)
        if record_id is None:
            logger.warning("Cannot index record without an id")
            return False

        tokens = frozenset(self.extract_tokens(record))

        with self._write_lock:
            postings = dict(self._postings)
            for token in tokens:
                postings[token] = postings.get(token, frozenset()) | {record_id}

            documents = dict(self._documents)
            documents[record_id] = documents.get(record_id, frozenset()) | tokens

            self._postings = postings
            self._documents = documents

        logger.debug(f"Indexed record {record_id} ({len(tokens)} tokens)")
        return True

    def remove(self, record_id: Any) -> bool:
        """
        Remove a record id from every token set

        Tokens left without records are dropped.

        Returns:
            True if the record was present in the index
        """
        record_id = str(record_id)

        with self._write_lock:
            postings = {}
            found = False
            for token, ids in self._postings.items():
                if record_id in ids:
                    found = True
                    ids = ids - {record_id}
                if ids:
                    postings[token] = ids

            documents = dict(self._documents)
            found = documents.pop(record_id, None) is not None or found

            self._postings = postings
            self._documents = documents

        logger.debug(f"Removed record {record_id} from index")
        return found

    def lookup(self, token: str) -> FrozenSet[str]:
        """Get the record ids containing a token"""
        if not token:
            return frozenset()
        return self._postings.get(token.lower(), frozenset())

    def search(self, tokens: Iterable[str], match_all: bool = True) -> FrozenSet[str]:
        """
        Find record ids for several tokens

        Args:
            tokens: Normalized search tokens
            match_all: Intersect when True, union otherwise

        Returns:
            Set of matching record ids
        """
        postings = self._postings
        id_sets = [postings.get(token.lower(), frozenset()) for token in tokens if token]
        if not id_sets:
            return frozenset()

        if match_all:
            return frozenset.intersection(*id_sets)
        return frozenset.union(*id_sets)

    def tokens_for(self, record_id: Any) -> FrozenSet[str]:
        """Get the tokens indexed for a record"""
        return self._documents.get(str(record_id), frozenset())

    @property
    def token_count(self) -> int:
        return len(self._postings)

    @property
    def document_count(self) -> int:
        return len(self._documents)

    def stats(self) -> Dict[str, int]:
        """Get index size information"""
        postings = self._postings
        return {
            "token_count": len(postings),
            "document_count": len(self._documents),
            "posting_count": sum(len(ids) for ids in postings.values()),
        }
