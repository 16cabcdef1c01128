"""
GapScope LLM Client
===================

Abstract client for the optional review enrichment step.
Supports OpenAI and Anthropic (Claude).

The LLM is only used to add free-form insights on top of the
deterministic analysis. Nothing in the scoring depends on it.
"""

import asyncio
import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from enum import Enum

logger = logging.getLogger(__name__)


class LLMProvider(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class LLMResponse:
    """Response of an LLM call."""
    content: str
    model: str
    provider: LLMProvider
    tokens_input: int
    tokens_output: int

    @property
    def total_tokens(self) -> int:
        return self.tokens_input + self.tokens_output


class LLMClient(ABC):
    """Abstract LLM client."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1200,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate a completion."""
        pass


def strip_code_fence(content: str) -> str:
    """Remove a ```json ... ``` wrapper around a model answer."""
    content = content.strip()
    if content.startswith("```"):
        content = content.split("```")[1]
        if content.startswith("json"):
            content = content[4:]
    return content.strip()


class OpenAIClient(LLMClient):
    """Client for OpenAI chat models."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
    ):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model
        self.timeout = timeout
        self._client = None

        if not self.api_key:
            logger.warning("OPENAI_API_KEY not set - AI insights disabled")

    def _get_client(self):
        """Lazy init of the OpenAI SDK client."""
        if self._client is None:
            import openai
            self._client = openai.OpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1200,
        temperature: float = 0.7,
    ) -> LLMResponse:
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY required")

        client = self._get_client()

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        # The SDK call blocks; a worker thread keeps the event loop free
        # so callers can bound it with asyncio.wait_for
        response = await asyncio.to_thread(
            client.chat.completions.create,
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=self.model,
            provider=LLMProvider.OPENAI,
            tokens_input=response.usage.prompt_tokens,
            tokens_output=response.usage.completion_tokens,
        )


class AnthropicClient(LLMClient):
    """Client for Claude (Anthropic)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-3-haiku-20240307",
        timeout: float = 30.0,
    ):
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self.model = model
        self.timeout = timeout
        self._client = None

        if not self.api_key:
            logger.warning("ANTHROPIC_API_KEY not set - AI insights disabled")

    def _get_client(self):
        """Lazy init of the Anthropic SDK client."""
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1200,
        temperature: float = 0.7,
    ) -> LLMResponse:
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY required")

        client = self._get_client()

        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        response = await asyncio.to_thread(client.messages.create, **kwargs)

        return LLMResponse(
            content=response.content[0].text,
            model=self.model,
            provider=LLMProvider.ANTHROPIC,
            tokens_input=response.usage.input_tokens,
            tokens_output=response.usage.output_tokens,
        )


def get_llm_client(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    openai_api_key: Optional[str] = None,
    anthropic_api_key: Optional[str] = None,
    timeout: float = 30.0,
) -> Optional[LLMClient]:
    """
    Factory for an LLM client.

    Priority:
    1. Explicit provider
    2. OPENAI_API_KEY present -> OpenAI
    3. ANTHROPIC_API_KEY present -> Claude
    4. None (enrichment disabled)
    """
    openai_key = openai_api_key or os.getenv("OPENAI_API_KEY")
    anthropic_key = anthropic_api_key or os.getenv("ANTHROPIC_API_KEY")

    if provider == "openai" or (not provider and openai_key):
        if not openai_key:
            return None
        return OpenAIClient(api_key=openai_key, model=model or "gpt-4o-mini", timeout=timeout)

    if provider == "anthropic" or (not provider and anthropic_key):
        if not anthropic_key:
            return None
        return AnthropicClient(
            api_key=anthropic_key,
            model=model or "claude-3-haiku-20240307",
            timeout=timeout,
        )

    if provider:
        raise ValueError(f"Unknown LLM provider: {provider!r}")

    logger.info("No LLM API key found - AI insights disabled")
    return None
