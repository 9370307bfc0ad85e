"""Gemini API client with exponential backoff and rate limiting."""

from typing import Optional, Protocol

import google.generativeai as genai
from google.generativeai.types.generation_types import BlockedPromptException
from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mangrove_system.config.logging import get_logger
from mangrove_system.config.settings import settings
from mangrove_system.llm.rate_limiter import RateLimiter

logger = get_logger("llm.gemini")


class ContentAnalyzer(Protocol):
    """Anything that turns a prompt into model text.

    Analysis tasks and the synthesizer depend on this protocol only, so tests
    can inject a scripted analyzer in place of the Gemini client.
    """

    async def generate_content(self, prompt: str, temperature: float = 0.1) -> str:
        ...


class GeminiClient:
    """
    Google Gemini API client with rate limiting and error handling.

    Provides an async interface to Gemini models with exponential backoff
    for transient failures and a shared RPM/TPM budget. Blocked prompts are
    not retried.

    Attributes:
        model: Configured Gemini generative model instance
        rate_limiter: Token buckets awaited before every request
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        max_retries: int = 5,
    ):
        """
        Initialize Gemini client with API key from settings.

        Args:
            api_key: Override for settings.gemini_api_key
            model_name: Override for settings.gemini_model
            rate_limiter: Shared limiter (a new one from settings if None)
            max_retries: Attempts per request before giving up

        Raises:
            ValueError: If API key is not configured
        """
        api_key = api_key or settings.gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY not configured in environment")

        genai.configure(api_key=api_key)

        self.model_name = model_name or settings.gemini_model
        self.model = genai.GenerativeModel(self.model_name)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.max_retries = max_retries

        logger.info(f"Gemini client initialized with model {self.model_name}")

    async def generate_content(self, prompt: str, temperature: float = 0.1) -> str:
        """
        Generate content from Gemini API with exponential backoff.

        Args:
            prompt: Input prompt for content generation
            temperature: Sampling temperature (0.0-1.0). Lower = more deterministic

        Returns:
            Generated text content

        Raises:
            BlockedPromptException: If prompt violates safety policies
            Exception: For other API errors after retries exhausted
        """
        # Rough estimate, ~4 characters per token
        await self.rate_limiter.acquire(max(1, len(prompt) // 4))

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=30),
            retry=retry_if_not_exception_type(BlockedPromptException),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"Retry {attempt.retry_state.attempt_number}/{self.max_retries} "
                        f"for generate_content"
                    )
                try:
                    response = await self.model.generate_content_async(
                        prompt,
                        generation_config=genai.types.GenerationConfig(
                            temperature=temperature,
                        ),
                    )
                except BlockedPromptException as e:
                    logger.error(f"Prompt blocked by safety filters: {e}")
                    raise
                return response.text

        raise RuntimeError("Unexpected retry loop exit in generate_content")


_client: Optional[GeminiClient] = None


def get_client() -> GeminiClient:
    """
    Return the shared Gemini client, creating it on first use.

    Raises:
        ValueError: If API key is not configured
    """
    global _client
    if _client is None:
        _client = GeminiClient()
    return _client
