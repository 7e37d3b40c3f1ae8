"""
Schemas package: all data models for the 3I/ATLAS monitoring service.

Models are organized by domain in submodules:
  - base.py: Closed enums (source types, categories, claim types, severities...)
  - news.py: SourceEntry, RawArticle, IngestionReport
  - analysis.py: ClaimDraft, ClaimExtraction, ContradictionVerdict, ClaimSummary, ArticleAssessment
  - notifications.py: NotificationCandidate, NotificationPreferences, NotificationRecord
"""

# base.py: enums
from atlas_watch.schemas.base import (
    SourceType, Category, ClaimType, VerificationStatus,
    ContradictionLevel, VerdictLevel, ResolutionStatus,
    AnalysisType, AlertType, Severity, NotificationType,
)

# news.py: article models
from atlas_watch.schemas.news import SourceEntry, RawArticle, IngestionReport

# analysis.py: LLM structured outputs
from atlas_watch.schemas.analysis import (
    ClaimDraft, ClaimExtraction, ContradictionVerdict, ClaimSummary, ArticleAssessment,
)

# notifications.py: notification models
from atlas_watch.schemas.notifications import (
    NotificationCandidate, NotificationPreferences, NotificationRecord,
)

__all__ = [
    # base
    "SourceType", "Category", "ClaimType", "VerificationStatus",
    "ContradictionLevel", "VerdictLevel", "ResolutionStatus",
    "AnalysisType", "AlertType", "Severity", "NotificationType",
    # news
    "SourceEntry", "RawArticle", "IngestionReport",
    # analysis
    "ClaimDraft", "ClaimExtraction", "ContradictionVerdict", "ClaimSummary", "ArticleAssessment",
    # notifications
    "NotificationCandidate", "NotificationPreferences", "NotificationRecord",
]
