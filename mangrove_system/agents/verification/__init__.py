"""Verification submodule: facet analysis, aggregation and narrative synthesis.

Core workflow per submission:
1. Facet registry selects the evidence dimensions for the submission kind
2. One AnalysisTask per facet asks the content-analysis capability for a verdict
3. Aggregator combines the CheckResults into a deterministic decision
4. Synthesizer optionally explains the decision for human reviewers
"""

from mangrove_system.agents.verification.aggregator import (
    Aggregator,
    ComplaintPolicy,
    PlantationPolicy,
    ScoringPolicy,
    calculate_carbon_credits,
    plantation_points,
    species_multiplier,
)
from mangrove_system.agents.verification.analysis_task import AnalysisTask
from mangrove_system.agents.verification.facets import (
    COMPLAINT_FACETS,
    PLANTATION_FACETS,
    FacetSpec,
    facets_for,
)
from mangrove_system.agents.verification.synthesizer import Synthesizer

__all__ = [
    "Aggregator",
    "AnalysisTask",
    "COMPLAINT_FACETS",
    "ComplaintPolicy",
    "FacetSpec",
    "PLANTATION_FACETS",
    "PlantationPolicy",
    "ScoringPolicy",
    "Synthesizer",
    "calculate_carbon_credits",
    "facets_for",
    "plantation_points",
    "species_multiplier",
]
