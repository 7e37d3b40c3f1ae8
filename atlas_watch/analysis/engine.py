"""
Claim analysis engine: LLM claim extraction and pairwise contradiction detection.

Every public method recovers locally from LLM and persistence failures:
extraction yields [], comparison yields False, and nothing partial is stored.

The deep-analysis batch (analyze_pending) is the only code path that flips
an article's is_analyzed flag, and only once claim extraction succeeded.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel

from ..config import Settings, get_settings
from ..database import Database
from ..schemas import (
    AlertType, AnalysisType, ArticleAssessment, ClaimDraft, ClaimExtraction,
    ClaimSummary, ContradictionLevel, ContradictionVerdict, Severity, VerdictLevel,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class StructuredLLM(Protocol):
    """What the engine needs from an LLM adapter (LLMService satisfies it)."""

    def is_configured(self) -> bool:
        ...

    async def invoke(self, prompt: str, output_type: Type[T], system_prompt: str = "",
                     list_key: Optional[str] = None) -> T:
        ...


CLAIM_EXTRACTION_PROMPT = """You are an expert at extracting factual claims from scientific articles about the 3I/ATLAS comet.
Extract all major claims from the provided article. For each claim, identify:
1. The exact claim text
2. The claim type (trajectory, composition, activity, danger, origin, observation, speculation, or other)
3. Your confidence level (0.0 to 1.0) that this is a factual claim

Return a JSON object {"claims": [{"text": ..., "type": ..., "confidence": ...}]}. Only include substantial claims."""

ARTICLE_ASSESSMENT_PROMPT = """You are an expert analyst of 3I/ATLAS comet information. Analyze the article and provide:
1. A brief summary (2-3 sentences)
2. Key findings (list of 3-5 important points)
3. A credibility assessment (brief explanation of reliability)

Consider source type, evidence provided, and alignment with official NASA/ESA statements.
Return a JSON object {"summary": ..., "key_findings": [...], "credibility_assessment": ...}."""

CONTRADICTION_PROMPT = """You are an expert at identifying contradictions between scientific claims about 3I/ATLAS.
Analyze these two claims and determine if they contradict each other.
Return a JSON object with is_contradictory (boolean), contradiction_level (minor|moderate|major|critical|none), and explanation (string)."""

# Contradiction level → alert severity; only major/critical raise an alert
ALERT_SEVERITY = {
    ContradictionLevel.MAJOR: Severity.HIGH,
    ContradictionLevel.CRITICAL: Severity.CRITICAL,
}


class ClaimAnalysisEngine:
    """Extracts claims from articles and cross-checks them for contradictions."""

    def __init__(self, db: Database, llm: StructuredLLM, settings: Optional[Settings] = None):
        self.db = db
        self.llm = llm
        self.settings = settings or get_settings()

    def _article_prompt(self, title: str, body: Optional[str]) -> str:
        excerpt = (body or "")[: self.settings.claim_excerpt_chars]
        return f"Article Title: {title}\n\nArticle Content:\n{excerpt}"

    # ── Claims ────────────────────────────────────────────────────────

    async def extract_claims(self, article_id: int, title: str, body: Optional[str]) -> List[ClaimDraft]:
        """Ask the LLM for the article's claims. Any failure yields []."""
        drafts = await self._extract(article_id, title, body)
        return drafts if drafts is not None else []

    async def _extract(self, article_id: int, title: str, body: Optional[str]) -> Optional[List[ClaimDraft]]:
        """Like extract_claims, but None when the LLM call failed."""
        try:
            extraction = await self.llm.invoke(
                self._article_prompt(title, body),
                output_type=ClaimExtraction,
                system_prompt=CLAIM_EXTRACTION_PROMPT,
                list_key="claims",
            )
            return list(extraction.claims)
        except Exception as e:
            logger.warning(f"[Analysis] Claim extraction failed for article {article_id}: {e}")
            return None

    def store_claims(self, article_id: int, drafts: List[ClaimDraft]) -> List[int]:
        """Persist drafts verbatim as unverified claims."""
        ids = self.db.insert_claims(article_id, drafts)
        if drafts and not ids:
            logger.warning(f"[Analysis] {len(drafts)} claims for article {article_id} were not stored")
        return ids

    async def assess_article(self, article_id: int, title: str, body: Optional[str]) -> Optional[ArticleAssessment]:
        """Summary, key findings and credibility reading, stored as credibility_assessment."""
        try:
            assessment = await self.llm.invoke(
                self._article_prompt(title, body),
                output_type=ArticleAssessment,
                system_prompt=ARTICLE_ASSESSMENT_PROMPT,
            )
        except Exception as e:
            logger.warning(f"[Analysis] Assessment failed for article {article_id}: {e}")
            return None

        self.db.insert_analysis_result(
            article_id,
            AnalysisType.CREDIBILITY_ASSESSMENT,
            assessment.model_dump(),
            confidence=0.7,
        )
        return assessment

    # ── Contradictions ────────────────────────────────────────────────

    async def compare_claims(self, claim_id_1: int, claim_id_2: int) -> bool:
        """Record a contradiction between two claims if the LLM finds one."""
        try:
            claim_1 = self.db.get_claim(claim_id_1)
            claim_2 = self.db.get_claim(claim_id_2)
            if not claim_1 or not claim_2:
                logger.debug(f"[Analysis] Claim pair {claim_id_1}/{claim_id_2} not found")
                return False

            verdict = await self.llm.invoke(
                f"Claim 1: {claim_1['claim_text']}\n\nClaim 2: {claim_2['claim_text']}",
                output_type=ContradictionVerdict,
                system_prompt=CONTRADICTION_PROMPT,
            )
            if not verdict.is_contradictory or verdict.contradiction_level == VerdictLevel.NONE:
                return False

            level = ContradictionLevel(verdict.contradiction_level.value)
            contradiction_id = self.db.insert_contradiction(claim_id_1, claim_id_2, level, verdict.explanation)
            if contradiction_id is None:
                return False

            logger.info(f"[Analysis] {level.value} contradiction between claims {claim_id_1} and {claim_id_2}")
            if level in ALERT_SEVERITY:
                self.db.insert_alert(
                    AlertType.CONTRADICTION_DETECTED,
                    title=f"{level.value.capitalize()} contradiction detected in {claim_1['claim_type']} claims",
                    description=verdict.explanation,
                    severity=ALERT_SEVERITY[level],
                    article_id=claim_2["article_id"],
                )
            return True
        except Exception as e:
            logger.warning(f"[Analysis] Contradiction check failed for {claim_id_1}/{claim_id_2}: {e}")
            return False

    # ── Pipelines ─────────────────────────────────────────────────────

    def summarize_claims(self, article_id: int) -> ClaimSummary:
        """Count, per-type histogram and mean confidence; stored as summary_generation."""
        claims = self.db.get_claims_for_article(article_id)
        if not claims:
            return ClaimSummary()

        histogram = Counter(c["claim_type"] for c in claims)
        average = sum(float(c["confidence"] or 0.0) for c in claims) / len(claims)
        summary = ClaimSummary(
            total_claims=len(claims),
            claim_types=dict(histogram),
            average_confidence=round(average, 4),
        )
        summary.analysis_id = self.db.insert_analysis_result(
            article_id,
            AnalysisType.SUMMARY_GENERATION,
            {
                "total_claims": summary.total_claims,
                "claim_types": summary.claim_types,
                "average_confidence": summary.average_confidence,
            },
            confidence=0.9,
        )
        return summary

    async def run_pipeline(self, article_id: int, title: str, body: Optional[str]) -> Optional[ClaimSummary]:
        """Extract → persist → assess → summarize. Does not touch is_analyzed."""
        logger.info(f"[Analysis] Starting pipeline for article {article_id}")
        drafts = await self.extract_claims(article_id, title, body)
        return await self._finish_pipeline(article_id, title, body, drafts)

    async def _finish_pipeline(self, article_id: int, title: str, body: Optional[str],
                               drafts: List[ClaimDraft]) -> Optional[ClaimSummary]:
        try:
            self.store_claims(article_id, drafts)
        except Exception as e:
            logger.warning(f"[Analysis] Storing claims failed for article {article_id}: {e}")

        try:
            await self.assess_article(article_id, title, body)
        except Exception as e:
            logger.warning(f"[Analysis] Assessment step failed for article {article_id}: {e}")

        try:
            summary = self.summarize_claims(article_id)
        except Exception as e:
            logger.warning(f"[Analysis] Summary failed for article {article_id}: {e}")
            return None

        logger.info(f"[Analysis] Pipeline done for article {article_id}: {summary.total_claims} claims")
        return summary

    async def analyze_pending(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """Deep-analysis batch: analyze unanalyzed articles and cross-check new claims.

        An article whose claim extraction fails stays unanalyzed so the next
        batch retries it. Without a configured LLM the batch does nothing.
        """
        stats = {"articles": 0, "claims": 0, "comparisons": 0, "contradictions": 0, "failed": 0}
        if not self.llm.is_configured():
            logger.info("[Analysis] No LLM provider configured, skipping batch")
            return stats

        limit = limit or self.settings.analysis_batch_size
        articles = self.db.get_unanalyzed_articles(limit=limit)

        for article in articles:
            try:
                title = article["title"]
                body = article.get("content") or article.get("summary")
                drafts = await self._extract(article["id"], title, body)
                if drafts is None:
                    stats["failed"] += 1
                    continue

                summary = await self._finish_pipeline(article["id"], title, body, drafts)
                if summary is not None:
                    stats["claims"] += summary.total_claims

                for claim in self.db.get_claims_for_article(article["id"]):
                    others = self.db.get_recent_claims_by_type(
                        claim["claim_type"],
                        exclude_article_id=article["id"],
                        limit=self.settings.max_comparisons_per_claim,
                    )
                    for other in others:
                        stats["comparisons"] += 1
                        if await self.compare_claims(other["id"], claim["id"]):
                            stats["contradictions"] += 1

                self.db.mark_article_analyzed(article["id"])
                stats["articles"] += 1
            except Exception as e:
                stats["failed"] += 1
                logger.warning(f"[Analysis] Article {article.get('id')} failed: {e}")

        logger.info(
            f"[Analysis] Batch done: {stats['articles']} articles, {stats['claims']} claims, "
            f"{stats['contradictions']}/{stats['comparisons']} contradictions, {stats['failed']} failed"
        )
        return stats
