"""Test doubles for fetch adapters and the LLM adapter."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from atlas_watch.schemas import RawArticle
from atlas_watch.tools.feeds import FetchAdapter


def raw(url: str, title: str = "3I/ATLAS update", source: str = "Test Wire",
        description: Optional[str] = None, published: Optional[datetime] = None,
        content: Optional[str] = None) -> RawArticle:
    return RawArticle(
        title=title,
        url=url,
        source=source,
        description=description,
        published_at=published,
        content=content,
    )


def ts(day: int, hour: int = 12) -> datetime:
    return datetime(2025, 7, day, hour, 0, tzinfo=timezone.utc)


class FakeAdapter(FetchAdapter):
    """Returns canned articles, optionally after a delay or by raising."""

    def __init__(self, name: str, articles: Optional[List[RawArticle]] = None,
                 delay: float = 0.0, error: Optional[Exception] = None, settings=None):
        super().__init__(settings=settings)
        self.name = name
        self.articles = articles or []
        self.delay = delay
        self.error = error
        self.calls = 0

    async def _fetch(self) -> List[RawArticle]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.articles)


class RaisingAdapter(FakeAdapter):
    """Breaks the never-raise contract to exercise the aggregator's own guard."""

    async def fetch(self) -> List[RawArticle]:
        raise RuntimeError(f"{self.name} exploded")


class FakeLLM:
    """Answers invoke() from a per-output-type script.

    A script entry may be a model instance, an exception to raise, or a
    callable (prompt) -> model instance.
    """

    def __init__(self, responses: Optional[Dict[type, Any]] = None):
        self.responses = responses or {}
        self.prompts: List[tuple] = []

    async def invoke(self, prompt, output_type, system_prompt="", list_key=None):
        self.prompts.append((output_type, prompt))
        if output_type not in self.responses:
            raise RuntimeError(f"no scripted response for {output_type.__name__}")
        answer = self.responses[output_type]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer) and not hasattr(answer, "model_dump"):
            return answer(prompt)
        return answer

    def is_configured(self) -> bool:
        return True
