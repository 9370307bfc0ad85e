"""Reward ledger schema: per-user running totals.

An entry remembers which submissions have already been credited so applying
the same submission twice is a no-op.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class RewardLedgerEntry(BaseModel):
    """Running totals for one user."""

    user_id: str = Field(..., description="Ledger owner")
    credits_earned: float = Field(default=0.0, ge=0.0, description="Carbon credits earned")
    points: int = Field(default=0, ge=0, description="Gamification points")
    applied_submissions: list[str] = Field(
        default_factory=list,
        description="Submission ids already credited to this user",
    )
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "user-42",
                    "credits_earned": 5.55,
                    "points": 50,
                    "applied_submissions": ["sub-001"],
                }
            ]
        }
    }
