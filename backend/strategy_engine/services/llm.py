"""
LLM Service Module - Supports OpenAI GPT-4o and Google Gemini.
Provides a unified text-generation interface for strategy narratives.

Calls are bounded at this boundary: a request timeout plus tenacity retries
with exponential backoff (attempt count from settings).
"""
from __future__ import annotations
from typing import Dict, Optional
from dataclasses import dataclass, field
from functools import lru_cache
import logging

from tenacity import retry, stop_after_attempt, wait_exponential

from ..config import settings

logger = logging.getLogger(__name__)


STRATEGY_ANALYST_SYSTEM_PROMPT = """You are an expert political strategist and electoral analyst specializing in West Bengal assembly elections.

You receive a structured campaign strategy record as JSON. Treat every number in it as fixed.

Your core principles:
1. ACCURACY FIRST: Only state facts present in the record
2. NO HALLUCINATION: If data is unavailable, say so explicitly
3. NEVER change, recompute or round the record's numbers
4. ACTIONABLE: Provide specific, implementable recommendations

Response guidelines:
- Use markdown formatting for clarity
- Lead with the three highest-impact actions
- Keep to under 400 words"""


@dataclass
class LLMResponse:
    """Wrapper for LLM response."""
    text: str
    usage: Dict[str, int] = field(default_factory=dict)
    model: str = ""


class BaseLLM:
    """Base LLM interface."""

    name: str = "llm"

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        raise NotImplementedError

    @property
    def strategy_system_prompt(self) -> str:
        return STRATEGY_ANALYST_SYSTEM_PROMPT


class OpenAILLM(BaseLLM):
    """OpenAI chat-completions implementation."""

    name = "openai"

    # Model upgrade mapping - always use most capable
    MODEL_UPGRADES = {
        "gpt-4-turbo": "gpt-4o",
        "gpt-4-turbo-preview": "gpt-4o",
        "gpt-4": "gpt-4o",
        "gpt-3.5-turbo": "gpt-4o-mini",
    }

    def __init__(self, force_model: Optional[str] = None):
        from openai import OpenAI
        self.client = OpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.collaborator_timeout,
            max_retries=0,
        )

        requested_model = force_model or settings.openai_model
        self.model = self.MODEL_UPGRADES.get(requested_model, requested_model)
        if self.model != requested_model:
            logger.info("Upgraded model: %s -> %s", requested_model, self.model)

    @retry(
        stop=stop_after_attempt(settings.collaborator_max_attempts),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        if temperature is None:
            temperature = settings.openai_temperature

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return LLMResponse(
            text=response.choices[0].message.content or "",
            usage={
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
            } if response.usage else {},
            model=response.model,
        )


class GeminiLLM(BaseLLM):
    """Google Gemini implementation."""

    name = "gemini"

    PREFERRED_MODELS = ["gemini-1.5-pro-latest", "gemini-1.5-pro", "gemini-1.5-flash"]

    def __init__(self):
        import google.generativeai as genai
        genai.configure(api_key=settings.gemini_api_key)

        model_name = settings.gemini_model
        if model_name not in self.PREFERRED_MODELS:
            model_name = "gemini-1.5-pro"

        self.model = genai.GenerativeModel(model_name)
        self.model_name = model_name

    @retry(
        stop=stop_after_attempt(settings.collaborator_max_attempts),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        full_prompt = f"{system}\n\n{prompt}" if system else prompt
        response = self.model.generate_content(
            full_prompt,
            generation_config={
                "temperature": settings.openai_temperature if temperature is None else temperature,
                "max_output_tokens": max_tokens,
            },
            request_options={"timeout": settings.collaborator_timeout},
        )
        return LLMResponse(text=response.text, model=self.model_name)


class MockLLM(BaseLLM):
    """Offline stand-in used when no API key is configured."""

    name = "mock"

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        return LLMResponse(
            text="Mock narrative: focus on the highest-ranked voter segments and weak booths first.",
            model="mock",
        )


@lru_cache(maxsize=1)
def get_llm(force_model: Optional[str] = None) -> BaseLLM:
    """
    Factory function to get configured LLM instance.

    Prefers the configured provider, falls back to whichever key is set, and
    finally to MockLLM.
    """
    provider = settings.llm_provider.lower()
    logger.info(
        "Initializing LLM provider=%s openai_key=%s gemini_key=%s",
        provider,
        "SET" if settings.openai_api_key else "NOT SET",
        "SET" if settings.gemini_api_key else "NOT SET",
    )

    if provider == "openai" and settings.openai_api_key:
        return OpenAILLM(force_model=force_model)
    if provider == "gemini" and settings.gemini_api_key:
        return GeminiLLM()
    if settings.openai_api_key:
        logger.info("Falling back to OpenAI")
        return OpenAILLM(force_model=force_model)
    if settings.gemini_api_key:
        logger.info("Falling back to Gemini")
        return GeminiLLM()

    logger.warning("No LLM API keys found; using MockLLM")
    return MockLLM()
