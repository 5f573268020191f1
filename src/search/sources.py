"""
Record snapshot sources

The order-management side owns purchase orders; the search engine only
pulls read-only snapshots through one of these callables.
"""

import json
import logging
from typing import Any, List, Optional, Sequence

from .config import SearchConfig

logger = logging.getLogger(__name__)


class StaticRecordSource:
    """Serves a fixed list of records, replaceable by the host"""

    def __init__(self, records: Optional[Sequence[Any]] = None):
        self._records: List[Any] = list(records or [])

    def replace(self, records: Sequence[Any]) -> None:
        self._records = list(records)

    def __call__(self) -> List[Any]:
        return list(self._records)


class RedisRecordSource:
    """Reads a JSON array of records published under a Redis key"""

    def __init__(self, redis_client, key: str = SearchConfig.RECORDS_KEY):
        self.redis_client = redis_client
        self.key = key

    def __call__(self) -> List[Any]:
        if self.redis_client is None:
            return []

        try:
            data = self.redis_client.get(self.key)
        except Exception as e:
            logger.error(f"Error reading records from '{self.key}': {e}")
            return []

        if data is None:
            return []

        try:
            records = json.loads(data)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Records under '{self.key}' are not valid JSON: {e}")
            return []

        if not isinstance(records, list):
            logger.warning(f"Records under '{self.key}' are not a list")
            return []

        return records
