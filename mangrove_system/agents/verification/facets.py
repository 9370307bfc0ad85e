"""Facet registry: which evidence dimensions each submission kind is checked on.

A FacetSpec bundles everything an AnalysisTask needs for one facet: the
prompt template, the key in the model reply that carries the pass verdict,
and a predicate telling whether the submission has evidence for the facet
at all. Facets without evidence are never sent to the model.

Complaints:  image, geo, text
Plantations: data, image, document, location
"""

from dataclasses import dataclass
from typing import Any, Callable

from mangrove_system.config.prompts import (
    DATA_VALIDATION_PROMPT,
    DOCUMENT_VERIFICATION_PROMPT,
    GEO_VALIDATION_PROMPT,
    IMAGE_ANALYSIS_PROMPT,
    IMAGE_VERIFICATION_PROMPT,
    LOCATION_VERIFICATION_PROMPT,
    TEXT_ANALYSIS_PROMPT,
)
from mangrove_system.data_management.schemas import Facet, Submission, SubmissionKind


@dataclass(frozen=True)
class FacetSpec:
    """Static description of one facet analysis."""

    facet: Facet
    check_key: str
    prompt_template: str
    has_evidence: Callable[[Submission], bool]
    missing_reason: str

    def build_prompt(self, submission: Submission) -> str:
        """Render the prompt for a submission."""
        if submission.kind == SubmissionKind.COMPLAINT:
            inputs = complaint_prompt_inputs(submission)
        else:
            inputs = plantation_prompt_inputs(submission)
        return self.prompt_template.format(**inputs)


def _format_list(items: list[str]) -> str:
    if not items:
        return "None provided"
    return "\n".join(f"- {item}" for item in items)


def complaint_prompt_inputs(submission: Submission) -> dict[str, Any]:
    """Template variables for complaint prompts."""
    details = submission.complaint
    evidence = submission.evidence
    location = evidence.location
    return {
        "category": details.category.value,
        "incident_date": (
            details.incident_date.isoformat() if details.incident_date else "Not provided"
        ),
        "latitude": location.latitude if location else "Not provided",
        "longitude": location.longitude if location else "Not provided",
        "address": (location.address if location and location.address else details.landmark)
        or "Not provided",
        "description": evidence.text,
        "media": _format_list([f"{m.media_type}: {m.url}" for m in evidence.media]),
    }


def plantation_prompt_inputs(submission: Submission) -> dict[str, Any]:
    """Template variables for plantation prompts."""
    details = submission.plantation
    evidence = submission.evidence
    location = evidence.location
    return {
        "plantation_name": details.name,
        "area": details.area_hectares,
        "species": ", ".join(details.species) or "Not provided",
        "planting_date": details.planting_date.isoformat(),
        "survival_rate": details.survival_rate,
        "expected_carbon_credit": (
            details.expected_carbon_credit
            if details.expected_carbon_credit is not None
            else "Not provided"
        ),
        "submission_date": submission.created_at.date().isoformat(),
        "latitude": location.latitude if location else "Not provided",
        "longitude": location.longitude if location else "Not provided",
        "address": location.address if location and location.address else "Not provided",
        "location": location.display() if location else "Not provided",
        "images": _format_list([m.url for m in evidence.media]),
        "documents": _format_list([f"{d.name}: {d.url}" for d in evidence.documents]),
    }


def _has_media(submission: Submission) -> bool:
    return len(submission.evidence.media) > 0


def _has_location(submission: Submission) -> bool:
    return submission.evidence.location is not None


def _has_text(submission: Submission) -> bool:
    return bool(submission.evidence.text.strip())


def _has_documents(submission: Submission) -> bool:
    return len(submission.evidence.documents) > 0


def _has_plantation_details(submission: Submission) -> bool:
    return submission.plantation is not None


COMPLAINT_FACETS: tuple[FacetSpec, ...] = (
    FacetSpec(
        facet=Facet.IMAGE,
        check_key="imageCheck",
        prompt_template=IMAGE_ANALYSIS_PROMPT,
        has_evidence=_has_media,
        missing_reason="no media supplied",
    ),
    FacetSpec(
        facet=Facet.GEO,
        check_key="geoCheck",
        prompt_template=GEO_VALIDATION_PROMPT,
        has_evidence=_has_location,
        missing_reason="no location supplied",
    ),
    FacetSpec(
        facet=Facet.TEXT,
        check_key="textCheck",
        prompt_template=TEXT_ANALYSIS_PROMPT,
        has_evidence=_has_text,
        missing_reason="no description supplied",
    ),
)

PLANTATION_FACETS: tuple[FacetSpec, ...] = (
    FacetSpec(
        facet=Facet.DATA,
        check_key="dataCheck",
        prompt_template=DATA_VALIDATION_PROMPT,
        has_evidence=_has_plantation_details,
        missing_reason="no plantation details supplied",
    ),
    FacetSpec(
        facet=Facet.IMAGE,
        check_key="imageCheck",
        prompt_template=IMAGE_VERIFICATION_PROMPT,
        has_evidence=_has_media,
        missing_reason="no images supplied",
    ),
    FacetSpec(
        facet=Facet.DOCUMENT,
        check_key="documentCheck",
        prompt_template=DOCUMENT_VERIFICATION_PROMPT,
        has_evidence=_has_documents,
        missing_reason="no documents supplied",
    ),
    FacetSpec(
        facet=Facet.LOCATION,
        check_key="locationCheck",
        prompt_template=LOCATION_VERIFICATION_PROMPT,
        has_evidence=_has_location,
        missing_reason="no location supplied",
    ),
)

_FACETS_BY_KIND: dict[SubmissionKind, tuple[FacetSpec, ...]] = {
    SubmissionKind.COMPLAINT: COMPLAINT_FACETS,
    SubmissionKind.PLANTATION: PLANTATION_FACETS,
}


def facets_for(kind: SubmissionKind) -> tuple[FacetSpec, ...]:
    """Return the facet specs analysed for a submission kind."""
    return _FACETS_BY_KIND[kind]
