"""Scoring tables for submission aggregation.

Plantation facet weights (sum to 1.0):
1. Image evidence: 0.35
2. Data consistency: 0.25
3. Supporting documents: 0.25
4. Location suitability: 0.15

Species multipliers reflect relative carbon sequestration per hectare:
mangrove genera weigh 1.0-1.5, terrestrial species 0.5-0.8, and anything
unrecognized falls back to UNKNOWN_SPECIES_MULTIPLIER.
"""

from typing import Dict

PLANTATION_FACET_WEIGHTS: Dict[str, float] = {
    "data": 0.25,
    "image": 0.35,
    "document": 0.25,
    "location": 0.15,
}

# Status bands on the 0-100 overall score
VERIFIED_THRESHOLD = 80.0
REVIEW_THRESHOLD = 60.0

# Key: lowercase genus or common name
SPECIES_MULTIPLIERS: Dict[str, float] = {
    # Mangrove genera
    "rhizophora": 1.5,
    "heritiera": 1.4,
    "bruguiera": 1.3,
    "avicennia": 1.2,
    "sonneratia": 1.1,
    "ceriops": 1.0,

    # Non-mangrove species
    "phoenix": 0.8,
    "oak": 0.7,
    "pine": 0.6,
    "birch": 0.5,
}

UNKNOWN_SPECIES_MULTIPLIER = 0.8

# Plantation points by overall score, highest band first
PLANTATION_SCORE_POINTS: list[tuple[float, int]] = [
    (90.0, 50),
    (80.0, 30),
    (70.0, 20),
    (0.0, 10),
]

# Bonus points by area in hectares, largest band first
PLANTATION_AREA_BONUS: list[tuple[float, int]] = [
    (5.0, 20),
    (2.0, 10),
]

# Complaints need this many passing facets (of 3) to be verified
COMPLAINT_MIN_PASSING = 2

LOW_CONFIDENCE_THRESHOLD = 0.5
