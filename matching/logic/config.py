"""
Scoring configuration.

Defaults come from constants.py; deployments may override them through
environment variables (loaded from .env when present).
"""

import os
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .constants import (
    FACTOR_WEIGHTS,
    AVAILABILITY_CEILING_HOURS,
    EXPLANATION_THRESHOLD,
)

load_dotenv()

WEIGHT_ENV_KEYS = {
    "domain": "MATCH_WEIGHT_DOMAIN",
    "location": "MATCH_WEIGHT_LOCATION",
    "availability": "MATCH_WEIGHT_AVAILABILITY",
    "experience": "MATCH_WEIGHT_EXPERIENCE",
    "goals": "MATCH_WEIGHT_GOALS",
}


class ScoringConfig(BaseModel):
    """Tunable parameters of the mentor compatibility scorer."""
    weights: Dict[str, float] = Field(default_factory=lambda: dict(FACTOR_WEIGHTS))
    availability_ceiling_hours: float = Field(default=AVAILABILITY_CEILING_HOURS, gt=0.0)
    explanation_threshold: float = Field(default=EXPLANATION_THRESHOLD, ge=0.0, le=100.0)

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, value: Dict[str, float]) -> Dict[str, float]:
        missing = set(FACTOR_WEIGHTS) - set(value)
        if missing:
            raise ValueError(f"Missing factor weights: {sorted(missing)}")
        unknown = set(value) - set(FACTOR_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown factor weights: {sorted(unknown)}")
        if any(w < 0 for w in value.values()):
            raise ValueError("Factor weights must be non-negative")
        if abs(sum(value.values()) - 1.0) > 1e-6:
            raise ValueError(f"Factor weights must sum to 1.0, got {sum(value.values()):.4f}")
        return value


def load_scoring_config(env: Optional[Dict[str, str]] = None) -> ScoringConfig:
    """Build a ScoringConfig from environment variables, falling back to defaults."""
    env = os.environ if env is None else env

    weights = dict(FACTOR_WEIGHTS)
    for factor, key in WEIGHT_ENV_KEYS.items():
        if env.get(key):
            weights[factor] = float(env[key])

    return ScoringConfig(
        weights=weights,
        availability_ceiling_hours=float(
            env.get("MATCH_AVAILABILITY_CEILING_HOURS") or AVAILABILITY_CEILING_HOURS
        ),
        explanation_threshold=float(
            env.get("MATCH_EXPLANATION_THRESHOLD") or EXPLANATION_THRESHOLD
        ),
    )
