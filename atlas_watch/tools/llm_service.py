"""
LLM Service: pydantic-ai backed structured output.

Track A asks the agent for typed structured output directly.
Track B asks for plain text, repairs the JSON and validates it against the
same pydantic model. Either track failing to produce a conforming object
is an error for the caller to recover from.
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from ..config import Settings, get_settings
from . import json_repair

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class LLMService:
    """Thin wrapper over pydantic-ai Agents with per-instance agent caching."""

    def __init__(self, settings: Optional[Settings] = None, model: Optional[Model] = None):
        self.settings = settings or get_settings()
        self._model = model
        self._agent_cache: Dict[tuple, Agent] = {}

    def is_configured(self) -> bool:
        return self._model is not None or self.settings.get_llm_config() is not None

    def _get_model(self) -> Model:
        if self._model is not None:
            return self._model
        cfg = self.settings.get_llm_config()
        if cfg is None:
            raise RuntimeError("No LLM provider configured (set OPENAI_API_KEY or USE_OLLAMA)")
        if cfg["provider"] == "ollama":
            provider = OpenAIProvider(base_url=cfg["base_url"])
        else:
            provider = OpenAIProvider(base_url=cfg.get("base_url"), api_key=cfg["api_key"])
        self._model = OpenAIChatModel(model_name=cfg["model"], provider=provider)
        logger.info(f"LLM: {cfg['provider']}/{cfg['model']}")
        return self._model

    def _get_or_create_agent(self, output_type: type, system_prompt: str, retries: int = 2) -> Agent:
        key = (output_type, hash(system_prompt), retries)
        if key not in self._agent_cache:
            self._agent_cache[key] = Agent(
                self._get_model(),
                output_type=output_type,
                system_prompt=system_prompt,
                retries=retries,
            )
        return self._agent_cache[key]

    # ── Track A: Typed structured output ────────────────────────────

    async def run_structured(
        self,
        prompt: str,
        system_prompt: str = "",
        output_type: Type[T] = str,  # type: ignore[assignment]
        retries: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> T:
        """Generate structured output validated by pydantic-ai."""
        retries = retries if retries is not None else self.settings.llm_json_max_retries
        agent = self._get_or_create_agent(output_type, system_prompt, retries)
        result = await agent.run(
            prompt,
            model_settings=ModelSettings(
                temperature=temperature if temperature is not None else self.settings.llm_temperature,
            ),
        )
        return result.output

    # ── Track B: Raw text → JSON repair ─────────────────────────────

    async def generate_text(self, prompt: str, system_prompt: str = "") -> str:
        json_instruction = "\nYou must respond with valid JSON only. No markdown, no explanation."
        agent = self._get_or_create_agent(str, system_prompt + json_instruction, retries=1)
        result = await agent.run(
            prompt,
            model_settings=ModelSettings(temperature=self.settings.llm_temperature),
        )
        return result.output

    async def invoke(
        self,
        prompt: str,
        output_type: Type[T],
        system_prompt: str = "",
        list_key: Optional[str] = None,
    ) -> T:
        """Structured call with text fallback. Raises on failure.

        RuntimeError when no provider is configured; otherwise whatever
        Track B raised (ValueError for unusable text).
        """
        self._get_model()
        try:
            return await self.run_structured(prompt, system_prompt=system_prompt, output_type=output_type)
        except Exception as e:
            logger.warning(f"Track A failed, falling through to Track B: {e}")

        raw = await self.generate_text(prompt, system_prompt=system_prompt)
        return json_repair.parse_model(raw, output_type, list_key=list_key)

    def describe(self) -> Dict[str, Any]:
        """Provider summary for the health endpoint."""
        cfg = self.settings.get_llm_config()
        if self._model is not None and cfg is None:
            return {"provider": "custom", "configured": True}
        if cfg is None:
            return {"provider": None, "configured": False}
        return {"provider": cfg["provider"], "model": cfg["model"], "configured": True}
