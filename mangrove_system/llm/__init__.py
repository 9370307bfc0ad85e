"""Content-analysis capability: Gemini client, rate limiting and reply parsing."""

from mangrove_system.llm.gemini_client import ContentAnalyzer, GeminiClient, get_client
from mangrove_system.llm.rate_limiter import RateLimiter, TokenBucket
from mangrove_system.llm.response_parsing import extract_json_object

__all__ = [
    "ContentAnalyzer",
    "GeminiClient",
    "RateLimiter",
    "TokenBucket",
    "extract_json_object",
    "get_client",
]
