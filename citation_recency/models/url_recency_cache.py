from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from citation_recency.db.base import Base


class UrlRecencyCache(Base):
    """Memoized publication date / recency score for a cited URL.

    One row per URL, shared by every future citation of that URL. A row with
    a null score is a negative cache entry: the URL was checked and no date
    was found.
    """

    __tablename__ = "url_recency_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    domain: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    publication_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    recency_score: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 0..100, null = unknown
    extraction_method: Mapped[str] = mapped_column(String(30), nullable=False)  # ExtractionMethod value
    last_checked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
