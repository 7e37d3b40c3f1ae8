"""LLM claim extraction and contradiction detection."""

from atlas_watch.analysis.engine import ClaimAnalysisEngine
