"""
Persistence port for saved filters and search history

Each adapter stores the two aggregates as whole collections. A save either
replaces the stored collection completely or leaves it untouched.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from ..database.models import SavedSearchFilterRow, SearchHistoryRow
from .config import SearchConfig
from .models import SavedSearchFilter, SearchHistoryEntry

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse_documents(documents: List[Dict[str, Any]], model: Type[ModelT]) -> List[ModelT]:
    """Validate stored documents, skipping the ones that no longer parse"""
    parsed = []
    for document in documents:
        try:
            parsed.append(model.model_validate(document))
        except ValidationError as e:
            logger.warning(f"Skipping unreadable {model.__name__} document: {e}")
    return parsed


class SearchStore(ABC):
    """Load/save contract for the saved-filter and history aggregates"""

    @abstractmethod
    def load_filters(self) -> List[SavedSearchFilter]:
        pass

    @abstractmethod
    def save_filters(self, filters: List[SavedSearchFilter]) -> None:
        pass

    @abstractmethod
    def load_history(self) -> List[SearchHistoryEntry]:
        pass

    @abstractmethod
    def save_history(self, entries: List[SearchHistoryEntry]) -> None:
        pass


class InMemorySearchStore(SearchStore):
    """Process-local store; keeps JSON documents so callers never share objects"""

    def __init__(self):
        self._filters: List[Dict[str, Any]] = []
        self._history: List[Dict[str, Any]] = []

    def load_filters(self) -> List[SavedSearchFilter]:
        return _parse_documents(self._filters, SavedSearchFilter)

    def save_filters(self, filters: List[SavedSearchFilter]) -> None:
        self._filters = [f.model_dump(mode="json") for f in filters]

    def load_history(self) -> List[SearchHistoryEntry]:
        return _parse_documents(self._history, SearchHistoryEntry)

    def save_history(self, entries: List[SearchHistoryEntry]) -> None:
        self._history = [entry.model_dump(mode="json") for entry in entries]


class RedisSearchStore(SearchStore):
    """
    Redis-backed store

    Each aggregate is one JSON array under its own key, written with a
    single SET so a failed write leaves the previous value in place.
    """

    def __init__(
        self,
        redis_client,
        filters_key: str = SearchConfig.SAVED_FILTERS_KEY,
        history_key: str = SearchConfig.HISTORY_KEY
    ):
        self.redis_client = redis_client
        self.filters_key = filters_key
        self.history_key = history_key

    def _load(self, key: str, model: Type[ModelT]) -> List[ModelT]:
        data = self.redis_client.get(key)
        if data is None:
            return []
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        documents = json.loads(data)
        if not isinstance(documents, list):
            logger.warning(f"Ignoring non-list document stored under '{key}'")
            return []
        return _parse_documents(documents, model)

    def _save(self, key: str, items: List[BaseModel]) -> None:
        payload = json.dumps([item.model_dump(mode="json") for item in items])
        self.redis_client.set(key, payload)
        logger.debug(f"Stored {len(items)} documents under '{key}'")

    def load_filters(self) -> List[SavedSearchFilter]:
        return self._load(self.filters_key, SavedSearchFilter)

    def save_filters(self, filters: List[SavedSearchFilter]) -> None:
        self._save(self.filters_key, filters)

    def load_history(self) -> List[SearchHistoryEntry]:
        return self._load(self.history_key, SearchHistoryEntry)

    def save_history(self, entries: List[SearchHistoryEntry]) -> None:
        self._save(self.history_key, entries)


class SqlAlchemySearchStore(SearchStore):
    """
    SQL store; every save replaces the table contents inside one transaction
    and rolls back on failure
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load_filters(self) -> List[SavedSearchFilter]:
        session = self.session_factory()
        try:
            rows = session.query(SavedSearchFilterRow).all()
            return _parse_documents([row.payload for row in rows], SavedSearchFilter)
        finally:
            session.close()

    def save_filters(self, filters: List[SavedSearchFilter]) -> None:
        session = self.session_factory()
        try:
            session.query(SavedSearchFilterRow).delete()
            for saved in filters:
                session.add(SavedSearchFilterRow(
                    id=saved.id,
                    user_id=saved.user_id,
                    name=saved.name,
                    payload=saved.model_dump(mode="json")
                ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def load_history(self) -> List[SearchHistoryEntry]:
        session = self.session_factory()
        try:
            rows = session.query(SearchHistoryRow).order_by(SearchHistoryRow.timestamp.desc()).all()
            return _parse_documents([row.payload for row in rows], SearchHistoryEntry)
        finally:
            session.close()

    def save_history(self, entries: List[SearchHistoryEntry]) -> None:
        session = self.session_factory()
        try:
            session.query(SearchHistoryRow).delete()
            for entry in entries:
                session.add(SearchHistoryRow(
                    id=entry.id,
                    user_id=entry.user_id,
                    search_term=entry.search_term,
                    timestamp=entry.timestamp,
                    payload=entry.model_dump(mode="json")
                ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def create_search_store(
    backend: Optional[str] = None,
    redis_client=None,
    session_factory: Optional[Callable[[], Session]] = None
) -> SearchStore:
    """
    Build the configured store, falling back to memory when the backend
    is unknown or its connection is missing
    """
    backend = (backend or SearchConfig.STORE_BACKEND).lower()

    if backend == "redis":
        if redis_client is not None:
            return RedisSearchStore(redis_client)
        logger.warning("Redis search store requested without a Redis client - using memory store")
    elif backend == "sql":
        if session_factory is not None:
            return SqlAlchemySearchStore(session_factory)
        logger.warning("SQL search store requested without a session factory - using memory store")
    elif backend != "memory":
        logger.warning(f"Unknown search store backend '{backend}' - using memory store")

    return InMemorySearchStore()
