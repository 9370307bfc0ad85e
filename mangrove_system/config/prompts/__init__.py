"""Prompt templates for the content-analysis capability.

Prompts follow a common shape:
- A distinctive first line naming the agent role
- Structured JSON output with a facet-specific pass key
- Facet-local 0-100 score and 0-1 confidence

Modules:
    complaint_prompts: Image, geo and text prompts for incident complaints
    plantation_prompts: Data, image, document and location prompts for plantations
"""

from mangrove_system.config.prompts.complaint_prompts import (
    COMPLAINT_SYNTHESIS_PROMPT,
    GEO_VALIDATION_PROMPT,
    IMAGE_ANALYSIS_PROMPT,
    TEXT_ANALYSIS_PROMPT,
)
from mangrove_system.config.prompts.plantation_prompts import (
    DATA_VALIDATION_PROMPT,
    DOCUMENT_VERIFICATION_PROMPT,
    IMAGE_VERIFICATION_PROMPT,
    LOCATION_VERIFICATION_PROMPT,
    PLANTATION_SYNTHESIS_PROMPT,
)

__all__ = [
    "IMAGE_ANALYSIS_PROMPT",
    "GEO_VALIDATION_PROMPT",
    "TEXT_ANALYSIS_PROMPT",
    "COMPLAINT_SYNTHESIS_PROMPT",
    "DATA_VALIDATION_PROMPT",
    "IMAGE_VERIFICATION_PROMPT",
    "DOCUMENT_VERIFICATION_PROMPT",
    "LOCATION_VERIFICATION_PROMPT",
    "PLANTATION_SYNTHESIS_PROMPT",
]
