"""Verification pipeline: facet fan-out, aggregation and synthesis.

Usage:
    from mangrove_system.pipeline import VerificationPipeline

    pipeline = VerificationPipeline()
    result = await pipeline.verify(submission)
"""

from mangrove_system.pipeline.verification_pipeline import VerificationPipeline

__all__ = ["VerificationPipeline"]
