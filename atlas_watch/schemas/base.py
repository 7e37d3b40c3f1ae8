"""
Common enums used across the entire application.

They define the vocabulary of the system: source kinds, article categories,
claim types, severities, notification kinds and analysis/alert labels.
Every value here matches the string stored in the database.
"""

from enum import Enum


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS - Sources & Articles
# ══════════════════════════════════════════════════════════════════════════════

class SourceType(str, Enum):
    """Kind of publisher behind a source."""
    OFFICIAL_AGENCY = "official_agency"
    PEER_REVIEWED = "peer_reviewed"
    NEWS_OUTLET = "news_outlet"
    SCIENTIFIC_BLOG = "scientific_blog"
    SOCIAL_MEDIA = "social_media"
    SKEPTIC_ANALYSIS = "skeptic_analysis"
    GOVERNMENT = "government"
    OTHER = "other"


class Category(str, Enum):
    """Topic category assigned to an article at ingestion."""
    TRAJECTORY = "trajectory"
    COMPOSITION = "composition"
    ACTIVITY = "activity"
    GOVERNMENT_STATEMENT = "government_statement"
    SCIENTIFIC_DISCOVERY = "scientific_discovery"
    SPECULATION = "speculation"
    DEBUNKING = "debunking"
    INTERNATIONAL_PERSPECTIVE = "international_perspective"
    TIMELINE_EVENT = "timeline_event"
    OTHER = "other"


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS - Claims & Contradictions
# ══════════════════════════════════════════════════════════════════════════════

class ClaimType(str, Enum):
    TRAJECTORY = "trajectory"
    COMPOSITION = "composition"
    ACTIVITY = "activity"
    DANGER = "danger"
    ORIGIN = "origin"
    OBSERVATION = "observation"
    SPECULATION = "speculation"
    OTHER = "other"


class VerificationStatus(str, Enum):
    UNVERIFIED = "unverified"
    SUPPORTED = "supported"
    CONTRADICTED = "contradicted"
    DEBUNKED = "debunked"
    INCONCLUSIVE = "inconclusive"


class ContradictionLevel(str, Enum):
    """Severity of a recorded contradiction (4-point scale)."""
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"


class VerdictLevel(str, Enum):
    """Contradiction level as answered by the LLM; NONE never reaches the store."""
    NONE = "none"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"


class ResolutionStatus(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    INCONCLUSIVE = "inconclusive"


class AnalysisType(str, Enum):
    CLAIM_EXTRACTION = "claim_extraction"
    CROSS_REFERENCE = "cross_reference"
    CONTRADICTION_DETECTION = "contradiction_detection"
    CREDIBILITY_ASSESSMENT = "credibility_assessment"
    SUMMARY_GENERATION = "summary_generation"


class AlertType(str, Enum):
    MAJOR_DISCOVERY = "major_discovery"
    TRAJECTORY_CHANGE = "trajectory_change"
    COMPOSITION_UPDATE = "composition_update"
    GOVERNMENT_STATEMENT = "government_statement"
    CONTRADICTION_DETECTED = "contradiction_detected"
    SIGNIFICANT_CHANGE = "significant_change"
    VERIFICATION_UPDATE = "verification_update"


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS - Notifications
# ══════════════════════════════════════════════════════════════════════════════

class Severity(str, Enum):
    """Severity shared by alerts and notifications."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    ARTICLE_NEW = "article_new"
    ALERT_TRIGGERED = "alert_triggered"
    CONTRADICTION_FOUND = "contradiction_found"
    SOURCE_UPDATE = "source_update"
