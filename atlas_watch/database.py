"""
SQL database: stores sources, articles, claims, contradictions, alerts and notifications.

Tables:
  - sources: Publisher registry with a static credibility prior
  - articles: One row per canonical URL, categorized and scored at ingestion
  - claims / contradictions: Output of the claim analysis engine
  - analysis_results: JSON summaries per article (summary_generation etc.)
  - alerts: Noteworthy events surfaced to the dashboard
  - notifications / notification_preferences: Per-user delivery

Every public method degrades to a safe default (empty list, None, False, 0)
when the database is unreachable; callers never see SQLAlchemyError.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Type

from sqlalchemy import (
    create_engine, Column, String, Integer, Float, Text, DateTime, Boolean,
    ForeignKey, func,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from contextlib import contextmanager

from .config import get_settings
from .schemas import (
    AnalysisType, AlertType, Category, ClaimDraft, ContradictionLevel,
    NotificationCandidate, NotificationPreferences, ResolutionStatus,
    Severity, SourceEntry, VerificationStatus,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ── Models ───────────────────────────────────────────────────────────────────

class SourceModel(Base):
    """Publisher registry entry."""
    __tablename__ = "sources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    url = Column(String(1000), default="")
    source_type = Column(String(30), nullable=False, default="news_outlet")
    country = Column(String(100))
    credibility_score = Column(Float, default=0.5)  # prior, admin-owned
    description = Column(Text)
    rss_url = Column(String(1000))
    api_url = Column(String(1000))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ArticleModel(Base):
    """Ingested article; url is the idempotency key."""
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_id = Column(Integer, ForeignKey("sources.id"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    content = Column(Text)
    summary = Column(Text)
    url = Column(String(1000), nullable=False, unique=True)
    image_url = Column(String(1000))
    author = Column(String(255))
    published_at = Column(DateTime)
    fetched_at = Column(DateTime, default=utcnow)
    category = Column(String(40), default="other", index=True)
    credibility_score = Column(Float, default=0.5)
    is_analyzed = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ClaimModel(Base):
    __tablename__ = "claims"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True)
    claim_text = Column(Text, nullable=False)
    claim_type = Column(String(30), nullable=False, index=True)
    confidence = Column(Float, default=0.5)
    is_verified = Column(Boolean, default=False)
    verification_status = Column(String(20), default="unverified")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ContradictionModel(Base):
    __tablename__ = "contradictions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    claim_id_1 = Column(Integer, ForeignKey("claims.id"), nullable=False)
    claim_id_2 = Column(Integer, ForeignKey("claims.id"), nullable=False)
    contradiction_level = Column(String(20), nullable=False)
    description = Column(Text)
    resolution_status = Column(String(20), default="unresolved")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class AnalysisResultModel(Base):
    __tablename__ = "analysis_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id"), index=True)
    analysis_type = Column(String(40), nullable=False)
    result = Column(Text)  # JSON
    confidence = Column(Float, default=0.5)
    related_article_ids = Column(Text)  # JSON array
    created_at = Column(DateTime, default=utcnow)


class AlertModel(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id"))
    alert_type = Column(String(40), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    severity = Column(String(20), default="medium")
    is_notified = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow, index=True)


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text)
    type = Column(String(30), nullable=False)
    category = Column(String(40))
    severity = Column(String(20), default="medium")
    source_id = Column(Integer)
    article_id = Column(Integer)
    is_read = Column(Boolean, default=False)
    is_dismissed = Column(Boolean, default=False)
    action_url = Column(String(1000))
    metadata_json = Column("metadata", Text)
    created_at = Column(DateTime, default=utcnow, index=True)
    expires_at = Column(DateTime)


class NotificationPreferenceModel(Base):
    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, unique=True)
    enable_toast_notifications = Column(Boolean, default=True)
    enable_notification_center = Column(Boolean, default=True)
    toast_duration = Column(Integer, default=5000)
    enable_new_articles = Column(Boolean, default=True)
    enable_alerts = Column(Boolean, default=True)
    enable_contradictions = Column(Boolean, default=True)
    enable_source_updates = Column(Boolean, default=True)
    filter_by_category = Column(Text)  # JSON array
    filter_by_severity = Column(Text)  # JSON array
    do_not_disturb_enabled = Column(Boolean, default=False)
    do_not_disturb_start = Column(String(5))
    do_not_disturb_end = Column(String(5))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# ── Allow-list codec (JSON text <-> typed set) ───────────────────────────────

def _load_allow_list(raw: Optional[str], enum_cls: Type, user_id: int) -> Set:
    """Parse a stored JSON allow-list. Malformed text means no filter."""
    if not raw:
        return set()
    try:
        values = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"[Prefs] user {user_id}: malformed {enum_cls.__name__} filter {raw!r}, ignoring")
        return set()
    if not isinstance(values, list):
        logger.warning(f"[Prefs] user {user_id}: {enum_cls.__name__} filter is not a list, ignoring")
        return set()
    parsed = set()
    for value in values:
        try:
            parsed.add(enum_cls(value))
        except ValueError:
            logger.warning(f"[Prefs] user {user_id}: unknown {enum_cls.__name__} {value!r} dropped")
    return parsed


def _dump_allow_list(values: Iterable) -> Optional[str]:
    values = sorted(v.value for v in values)
    return json.dumps(values) if values else None


class Database:
    """Database manager."""

    def __init__(self, database_url: Optional[str] = None):
        settings = get_settings()
        url = database_url or settings.database_url
        if "aiosqlite" in url:
            url = url.replace("sqlite+aiosqlite", "sqlite")

        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, echo=False, connect_args=connect_args)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> bool:
        """Create all tables (safe to call multiple times). False when the store is unreachable."""
        try:
            Base.metadata.create_all(self.engine)
            return True
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to create tables: {e}")
            return False

    @contextmanager
    def get_session(self) -> Session:
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """True when a trivial query succeeds."""
        try:
            with self.get_session() as session:
                session.query(func.count(SourceModel.id)).scalar()
            return True
        except SQLAlchemyError as e:
            logger.warning(f"[DB] ping failed: {e}")
            return False

    # ── Sources ───────────────────────────────────────────────────────

    def ensure_source(self, entry: SourceEntry) -> Optional[Dict[str, Any]]:
        """Insert a source by name if absent. Existing rows are returned untouched.

        The returned dict carries `created` so callers can count new rows.
        """
        try:
            with self.get_session() as session:
                existing = session.query(SourceModel).filter_by(name=entry.name).first()
                if existing:
                    data = self._source_to_dict(existing)
                    data["created"] = False
                    return data
                row = SourceModel(
                    name=entry.name,
                    url=entry.url,
                    source_type=entry.source_type.value,
                    country=entry.country,
                    credibility_score=entry.credibility_score,
                    description=entry.description,
                    rss_url=entry.rss_url,
                    api_url=entry.api_url,
                    is_active=entry.is_active,
                )
                session.add(row)
                session.flush()
                data = self._source_to_dict(row)
                data["created"] = True
                logger.info(f"[DB] Added source: {entry.name}")
                return data
        except IntegrityError:
            # Lost a race against another writer; the row exists now
            data = self.get_source_by_name(entry.name)
            if data:
                data["created"] = False
            return data
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to ensure source {entry.name}: {e}")
            return None

    def get_source_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                row = session.query(SourceModel).filter_by(name=name).first()
                return self._source_to_dict(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to load source {name}: {e}")
            return None

    def get_source(self, source_id: int) -> Optional[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                row = session.query(SourceModel).filter_by(id=source_id).first()
                return self._source_to_dict(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to load source {source_id}: {e}")
            return None

    def get_active_sources(self) -> List[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                rows = (
                    session.query(SourceModel)
                    .filter(SourceModel.is_active.is_(True))
                    .order_by(SourceModel.credibility_score.desc(), SourceModel.name)
                    .all()
                )
                return [self._source_to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to list sources: {e}")
            return []

    def set_source_prior(self, source_id: int, credibility_score: float) -> bool:
        """Admin edit of a source prior. The ingestion pipeline never calls this."""
        try:
            with self.get_session() as session:
                row = session.query(SourceModel).filter_by(id=source_id).first()
                if not row:
                    return False
                row.credibility_score = max(0.0, min(1.0, credibility_score))
                return True
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to update source {source_id}: {e}")
            return False

    # ── Articles ──────────────────────────────────────────────────────

    def article_exists(self, url: str) -> bool:
        try:
            with self.get_session() as session:
                return session.query(ArticleModel.id).filter_by(url=url).first() is not None
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to check article {url}: {e}")
            return False

    def insert_article(self, data: Dict[str, Any]) -> Optional[int]:
        """Insert an article if its URL is new. Returns the id, or None when skipped."""
        try:
            with self.get_session() as session:
                row = ArticleModel(
                    source_id=data["source_id"],
                    title=data["title"],
                    content=data.get("content"),
                    summary=data.get("summary"),
                    url=data["url"],
                    image_url=data.get("image_url"),
                    author=data.get("author"),
                    published_at=_to_naive_utc(data.get("published_at")),
                    fetched_at=_to_naive_utc(data.get("fetched_at")) or utcnow(),
                    category=Category(data.get("category", Category.OTHER)).value,
                    credibility_score=data.get("credibility_score", 0.5),
                    is_analyzed=False,
                )
                session.add(row)
                session.flush()
                return row.id
        except IntegrityError:
            logger.debug(f"[DB] Article already stored: {data.get('url')}")
            return None
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to add article {data.get('url')}: {e}")
            return None

    def get_article(self, article_id: int) -> Optional[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                row = session.query(ArticleModel).filter_by(id=article_id).first()
                return self._article_to_dict(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to load article {article_id}: {e}")
            return None

    def get_latest_articles(self, limit: int = 20) -> List[Dict[str, Any]]:
        return self._query_articles(limit=limit)

    def get_articles_by_category(self, category: Category, limit: int = 20) -> List[Dict[str, Any]]:
        return self._query_articles(limit=limit, category=Category(category).value)

    def get_articles_by_source(self, source_id: int, limit: int = 20) -> List[Dict[str, Any]]:
        return self._query_articles(limit=limit, source_id=source_id)

    def get_unanalyzed_articles(self, limit: int = 20) -> List[Dict[str, Any]]:
        return self._query_articles(limit=limit, is_analyzed=False)

    def _query_articles(self, limit: int, **filters) -> List[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                query = session.query(ArticleModel)
                if filters:
                    query = query.filter_by(**filters)
                rows = (
                    query.order_by(
                        ArticleModel.published_at.is_(None),
                        ArticleModel.published_at.desc(),
                        ArticleModel.id.desc(),
                    )
                    .limit(limit)
                    .all()
                )
                return [self._article_to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to query articles {filters}: {e}")
            return []

    def mark_article_analyzed(self, article_id: int) -> bool:
        try:
            with self.get_session() as session:
                updated = (
                    session.query(ArticleModel)
                    .filter_by(id=article_id)
                    .update({"is_analyzed": True, "updated_at": utcnow()})
                )
                return updated > 0
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to mark article {article_id} analyzed: {e}")
            return False

    def count_articles(self) -> int:
        try:
            with self.get_session() as session:
                return session.query(func.count(ArticleModel.id)).scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to count articles: {e}")
            return 0

    # ── Claims & Contradictions ───────────────────────────────────────

    def insert_claims(self, article_id: int, drafts: List[ClaimDraft]) -> List[int]:
        """Persist claim drafts verbatim as unverified claims."""
        if not drafts:
            return []
        try:
            with self.get_session() as session:
                rows = [
                    ClaimModel(
                        article_id=article_id,
                        claim_text=d.text,
                        claim_type=d.type.value,
                        confidence=d.confidence,
                        is_verified=False,
                        verification_status=VerificationStatus.UNVERIFIED.value,
                    )
                    for d in drafts
                ]
                session.add_all(rows)
                session.flush()
                return [r.id for r in rows]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to store claims for article {article_id}: {e}")
            return []

    def get_claim(self, claim_id: int) -> Optional[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                row = session.query(ClaimModel).filter_by(id=claim_id).first()
                return self._claim_to_dict(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to load claim {claim_id}: {e}")
            return None

    def get_claims_for_article(self, article_id: int) -> List[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                rows = session.query(ClaimModel).filter_by(article_id=article_id).order_by(ClaimModel.id).all()
                return [self._claim_to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to load claims for article {article_id}: {e}")
            return []

    def get_recent_claims_by_type(
        self, claim_type: str, exclude_article_id: Optional[int] = None, limit: int = 5,
    ) -> List[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                query = session.query(ClaimModel).filter(ClaimModel.claim_type == claim_type)
                if exclude_article_id is not None:
                    query = query.filter(ClaimModel.article_id != exclude_article_id)
                rows = query.order_by(ClaimModel.id.desc()).limit(limit).all()
                return [self._claim_to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to load {claim_type} claims: {e}")
            return []

    def insert_contradiction(
        self, claim_id_1: int, claim_id_2: int, level: ContradictionLevel, description: str,
    ) -> Optional[int]:
        try:
            with self.get_session() as session:
                row = ContradictionModel(
                    claim_id_1=claim_id_1,
                    claim_id_2=claim_id_2,
                    contradiction_level=ContradictionLevel(level).value,
                    description=description,
                    resolution_status=ResolutionStatus.UNRESOLVED.value,
                )
                session.add(row)
                session.flush()
                return row.id
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to store contradiction {claim_id_1}/{claim_id_2}: {e}")
            return None

    def get_contradictions(self, limit: int = 20) -> List[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                rows = session.query(ContradictionModel).order_by(ContradictionModel.id.desc()).limit(limit).all()
                return [
                    {
                        "id": r.id,
                        "claim_id_1": r.claim_id_1,
                        "claim_id_2": r.claim_id_2,
                        "contradiction_level": r.contradiction_level,
                        "description": r.description,
                        "resolution_status": r.resolution_status,
                        "created_at": r.created_at,
                    }
                    for r in rows
                ]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to list contradictions: {e}")
            return []

    # ── Analysis Results & Alerts ─────────────────────────────────────

    def insert_analysis_result(
        self,
        article_id: Optional[int],
        analysis_type: AnalysisType,
        result: Dict[str, Any],
        confidence: float = 0.5,
        related_article_ids: Optional[List[int]] = None,
    ) -> Optional[int]:
        try:
            with self.get_session() as session:
                row = AnalysisResultModel(
                    article_id=article_id,
                    analysis_type=AnalysisType(analysis_type).value,
                    result=json.dumps(result),
                    confidence=confidence,
                    related_article_ids=json.dumps(related_article_ids) if related_article_ids else None,
                )
                session.add(row)
                session.flush()
                return row.id
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to store {analysis_type} result for article {article_id}: {e}")
            return None

    def get_analysis_results(self, article_id: int) -> List[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                rows = (
                    session.query(AnalysisResultModel)
                    .filter_by(article_id=article_id)
                    .order_by(AnalysisResultModel.id)
                    .all()
                )
                return [
                    {
                        "id": r.id,
                        "article_id": r.article_id,
                        "analysis_type": r.analysis_type,
                        "result": json.loads(r.result) if r.result else {},
                        "confidence": r.confidence,
                        "related_article_ids": json.loads(r.related_article_ids) if r.related_article_ids else [],
                        "created_at": r.created_at,
                    }
                    for r in rows
                ]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to load analysis results for article {article_id}: {e}")
            return []

    def insert_alert(
        self,
        alert_type: AlertType,
        title: str,
        description: str = "",
        severity: Severity = Severity.MEDIUM,
        article_id: Optional[int] = None,
    ) -> Optional[int]:
        try:
            with self.get_session() as session:
                row = AlertModel(
                    article_id=article_id,
                    alert_type=AlertType(alert_type).value,
                    title=title[:500],
                    description=description,
                    severity=Severity(severity).value,
                )
                session.add(row)
                session.flush()
                return row.id
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to store alert {title!r}: {e}")
            return None

    def get_recent_alerts(self, limit: int = 10) -> List[Dict[str, Any]]:
        try:
            with self.get_session() as session:
                rows = (
                    session.query(AlertModel)
                    .order_by(AlertModel.created_at.desc(), AlertModel.id.desc())
                    .limit(limit)
                    .all()
                )
                return [
                    {
                        "id": r.id,
                        "article_id": r.article_id,
                        "alert_type": r.alert_type,
                        "title": r.title,
                        "description": r.description,
                        "severity": r.severity,
                        "is_notified": bool(r.is_notified),
                        "created_at": r.created_at,
                    }
                    for r in rows
                ]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to list alerts: {e}")
            return []

    # ── Notifications ─────────────────────────────────────────────────

    def insert_notification(
        self, candidate: NotificationCandidate, expires_at: Optional[datetime] = None,
    ) -> Optional[int]:
        try:
            with self.get_session() as session:
                row = NotificationModel(
                    user_id=candidate.user_id,
                    title=candidate.title[:255],
                    message=candidate.message,
                    type=candidate.type.value,
                    category=candidate.category.value if candidate.category else None,
                    severity=(candidate.severity or Severity.MEDIUM).value,
                    source_id=candidate.source_id,
                    article_id=candidate.article_id,
                    action_url=candidate.action_url,
                    metadata_json=json.dumps(candidate.metadata) if candidate.metadata else None,
                    expires_at=_to_naive_utc(expires_at),
                )
                session.add(row)
                session.flush()
                return row.id
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to create notification for user {candidate.user_id}: {e}")
            return None

    def get_notifications(
        self, user_id: int, limit: int = 20, unread_only: bool = False,
    ) -> List[Dict[str, Any]]:
        """Newest first; dismissed notifications are never returned."""
        try:
            with self.get_session() as session:
                query = session.query(NotificationModel).filter(
                    NotificationModel.user_id == user_id,
                    NotificationModel.is_dismissed.is_(False),
                )
                if unread_only:
                    query = query.filter(NotificationModel.is_read.is_(False))
                rows = (
                    query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                    .limit(limit)
                    .all()
                )
                return [self._notification_to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to list notifications for user {user_id}: {e}")
            return []

    def set_notification_flag(self, notification_id: int, flag: str) -> bool:
        """Set is_read or is_dismissed to True. Flags are never reset."""
        if flag not in ("is_read", "is_dismissed"):
            raise ValueError(f"Unknown notification flag: {flag}")
        try:
            with self.get_session() as session:
                row = session.query(NotificationModel).filter_by(id=notification_id).first()
                if not row:
                    return False
                setattr(row, flag, True)
                return True
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to set {flag} on notification {notification_id}: {e}")
            return False

    def delete_expired_notifications(self, now: Optional[datetime] = None) -> int:
        now = _to_naive_utc(now) or utcnow()
        try:
            with self.get_session() as session:
                return (
                    session.query(NotificationModel)
                    .filter(NotificationModel.expires_at.isnot(None), NotificationModel.expires_at < now)
                    .delete(synchronize_session=False)
                )
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to clean up notifications: {e}")
            return 0

    def get_known_user_ids(self) -> List[int]:
        """Users that have preferences or have received a notification."""
        try:
            with self.get_session() as session:
                ids = {uid for (uid,) in session.query(NotificationPreferenceModel.user_id).all()}
                ids.update(uid for (uid,) in session.query(NotificationModel.user_id).distinct().all())
                return sorted(ids)
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to list users: {e}")
            return []

    # ── Notification Preferences ──────────────────────────────────────

    def get_preferences(self, user_id: int) -> Optional[NotificationPreferences]:
        try:
            with self.get_session() as session:
                row = session.query(NotificationPreferenceModel).filter_by(user_id=user_id).first()
                if not row:
                    return None
                return NotificationPreferences(
                    user_id=row.user_id,
                    enable_toast_notifications=bool(row.enable_toast_notifications),
                    enable_notification_center=bool(row.enable_notification_center),
                    toast_duration=row.toast_duration or 5000,
                    enable_new_articles=bool(row.enable_new_articles),
                    enable_alerts=bool(row.enable_alerts),
                    enable_contradictions=bool(row.enable_contradictions),
                    enable_source_updates=bool(row.enable_source_updates),
                    filter_by_category=_load_allow_list(row.filter_by_category, Category, user_id),
                    filter_by_severity=_load_allow_list(row.filter_by_severity, Severity, user_id),
                    do_not_disturb_enabled=bool(row.do_not_disturb_enabled),
                    do_not_disturb_start=row.do_not_disturb_start,
                    do_not_disturb_end=row.do_not_disturb_end,
                )
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to load preferences for user {user_id}: {e}")
            return None

    def upsert_preferences(self, prefs: NotificationPreferences) -> bool:
        values = {
            "enable_toast_notifications": prefs.enable_toast_notifications,
            "enable_notification_center": prefs.enable_notification_center,
            "toast_duration": prefs.toast_duration,
            "enable_new_articles": prefs.enable_new_articles,
            "enable_alerts": prefs.enable_alerts,
            "enable_contradictions": prefs.enable_contradictions,
            "enable_source_updates": prefs.enable_source_updates,
            "filter_by_category": _dump_allow_list(prefs.filter_by_category),
            "filter_by_severity": _dump_allow_list(prefs.filter_by_severity),
            "do_not_disturb_enabled": prefs.do_not_disturb_enabled,
            "do_not_disturb_start": prefs.do_not_disturb_start,
            "do_not_disturb_end": prefs.do_not_disturb_end,
        }
        try:
            with self.get_session() as session:
                row = session.query(NotificationPreferenceModel).filter_by(user_id=prefs.user_id).first()
                if row is None:
                    session.add(NotificationPreferenceModel(user_id=prefs.user_id, **values))
                else:
                    for key, value in values.items():
                        setattr(row, key, value)
                return True
        except SQLAlchemyError as e:
            logger.error(f"[DB] Failed to save preferences for user {prefs.user_id}: {e}")
            return False

    # ── Row converters ────────────────────────────────────────────────

    @staticmethod
    def _source_to_dict(r: SourceModel) -> Dict[str, Any]:
        return {
            "id": r.id,
            "name": r.name,
            "url": r.url,
            "source_type": r.source_type,
            "country": r.country,
            "credibility_score": r.credibility_score,
            "description": r.description,
            "rss_url": r.rss_url,
            "api_url": r.api_url,
            "is_active": bool(r.is_active),
        }

    @staticmethod
    def _article_to_dict(r: ArticleModel) -> Dict[str, Any]:
        return {
            "id": r.id,
            "source_id": r.source_id,
            "title": r.title,
            "content": r.content,
            "summary": r.summary,
            "url": r.url,
            "image_url": r.image_url,
            "author": r.author,
            "published_at": r.published_at,
            "fetched_at": r.fetched_at,
            "category": r.category,
            "credibility_score": r.credibility_score,
            "is_analyzed": bool(r.is_analyzed),
        }

    @staticmethod
    def _claim_to_dict(r: ClaimModel) -> Dict[str, Any]:
        return {
            "id": r.id,
            "article_id": r.article_id,
            "claim_text": r.claim_text,
            "claim_type": r.claim_type,
            "confidence": r.confidence,
            "is_verified": bool(r.is_verified),
            "verification_status": r.verification_status,
        }

    @staticmethod
    def _notification_to_dict(r: NotificationModel) -> Dict[str, Any]:
        metadata = None
        if r.metadata_json:
            try:
                metadata = json.loads(r.metadata_json)
            except ValueError:
                logger.warning(f"[DB] Notification {r.id} has malformed metadata")
        return {
            "id": r.id,
            "user_id": r.user_id,
            "title": r.title,
            "message": r.message,
            "type": r.type,
            "category": r.category,
            "severity": r.severity,
            "source_id": r.source_id,
            "article_id": r.article_id,
            "is_read": bool(r.is_read),
            "is_dismissed": bool(r.is_dismissed),
            "action_url": r.action_url,
            "metadata": metadata,
            "created_at": r.created_at,
            "expires_at": r.expires_at,
        }


_db: Optional[Database] = None


def get_database() -> Database:
    """Get or create database instance."""
    global _db
    if _db is None:
        _db = Database()
        _db.create_tables()
    return _db
