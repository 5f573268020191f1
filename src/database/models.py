from sqlalchemy import Column, String, DateTime, JSON, Index
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()


def _utc_now():
    return datetime.now(timezone.utc)


class SavedSearchFilterRow(Base):
    __tablename__ = "saved_search_filters"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)

    # Full SavedSearchFilter document, dates as ISO-8601 strings
    payload = Column(JSON, nullable=False)

    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)


class SearchHistoryRow(Base):
    __tablename__ = "search_history"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(255), nullable=False)
    search_term = Column(String(1000))
    timestamp = Column(DateTime, nullable=False)

    # Full SearchHistoryEntry document, dates as ISO-8601 strings
    payload = Column(JSON, nullable=False)


Index('idx_saved_search_filters_user', SavedSearchFilterRow.user_id)
Index('idx_search_history_user_timestamp', SearchHistoryRow.user_id, SearchHistoryRow.timestamp)
