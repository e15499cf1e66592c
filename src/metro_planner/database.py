"""SQLite store for route search history."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, func, Column, Integer, String, DateTime
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DB_PATH

Base = declarative_base()


class SearchHistory(Base):
    """One planned trip per row."""
    __tablename__ = "search_history"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(100), default="default")
    origin_id = Column(String(100), nullable=False)
    destination_id = Column(String(100), nullable=False)
    route_count = Column(Integer, default=0)
    timestamp = Column(DateTime, default=datetime.utcnow)


class Database:
    """Database manager for search history."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(f"sqlite:///{self.db_path}")
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine)

    def add_search(self, origin_id: str, destination_id: str, route_count: int, user_id: str = "default"):
        """Record a planned trip."""
        session = self.Session()
        try:
            session.add(SearchHistory(
                user_id=user_id,
                origin_id=origin_id,
                destination_id=destination_id,
                route_count=route_count,
            ))
            session.commit()
        finally:
            session.close()

    def get_recent_searches(self, user_id: str = "default", limit: int = 10) -> list[dict]:
        """Most recent searches first."""
        session = self.Session()
        try:
            rows = session.query(SearchHistory).filter_by(
                user_id=user_id
            ).order_by(SearchHistory.timestamp.desc(), SearchHistory.id.desc()).limit(limit).all()
            return [
                {
                    "origin": r.origin_id,
                    "destination": r.destination_id,
                    "route_count": r.route_count,
                    "timestamp": r.timestamp.isoformat(),
                }
                for r in rows
            ]
        finally:
            session.close()

    def get_popular_trips(self, user_id: str = "default", limit: int = 5) -> list[tuple[str, str, int]]:
        """Most frequent origin/destination pairs for a user."""
        session = self.Session()
        try:
            results = session.query(
                SearchHistory.origin_id,
                SearchHistory.destination_id,
                func.count().label("count")
            ).filter_by(user_id=user_id).group_by(
                SearchHistory.origin_id, SearchHistory.destination_id
            ).order_by(func.count().desc()).limit(limit).all()

            return [(r[0], r[1], r[2]) for r in results]
        finally:
            session.close()

    def clear_history(self, user_id: str = "default"):
        session = self.Session()
        try:
            session.query(SearchHistory).filter_by(user_id=user_id).delete()
            session.commit()
        finally:
            session.close()


_db: Optional[Database] = None


def get_db() -> Database:
    """Get or create the shared database."""
    global _db
    if _db is None:
        _db = Database()
    return _db
