"""
Score aggregation and rubric-to-points helpers.

The appraisal total is the sum of the four category points plus the
capabilities subtotal read from the evaluation's rubric payload. Everything in
this module is pure: no I/O, same inputs give the same outputs.
"""
from typing import Any, Dict, Optional, Sequence, Tuple
from pydantic import ValidationError

from faculty_appraisal.models.grading_config import DEFAULT_TEACHING_BANDS
from faculty_appraisal.schemas.evaluation import Band, EvaluationRubric, CapabilitiesSelections

CATEGORY_FIELDS = (
    "research_pts",
    "university_service_pts",
    "community_service_pts",
    "teaching_quality_pts",
)

# Share of a category's weight earned by each band
BAND_FRACTIONS: Dict[Band, float] = {
    Band.HIGH: 1.0,
    Band.EXCEEDS: 0.8,
    Band.MEETS: 0.6,
    Band.PARTIAL: 0.4,
    Band.NEEDS: 0.2,
}

CAPABILITY_POINTS: Dict[Band, float] = {
    Band.HIGH: 20,
    Band.EXCEEDS: 16,
    Band.MEETS: 12,
    Band.PARTIAL: 8,
    Band.NEEDS: 4,
}

_DESCENDING_BANDS = (Band.HIGH, Band.EXCEEDS, Band.MEETS, Band.PARTIAL)


def _field(evaluation: Any, name: str) -> Any:
    if isinstance(evaluation, dict):
        return evaluation.get(name)
    return getattr(evaluation, name, None)


def capabilities_total(rubric: Any) -> float:
    """Capabilities subtotal from a rubric payload; 0 when absent or malformed."""
    if not isinstance(rubric, dict):
        return 0.0
    try:
        parsed = EvaluationRubric.model_validate(rubric)
    except ValidationError:
        return 0.0
    if parsed.capabilities is None:
        return 0.0
    return float(parsed.capabilities.total)


def compute_total(evaluation: Any) -> float:
    """
    Total score of an evaluation: the four category points plus
    rubric["capabilities"]["total"]. Missing category points count as 0.
    Accepts an Evaluation row or a plain mapping with the same keys.
    """
    section1 = sum(float(_field(evaluation, name) or 0) for name in CATEGORY_FIELDS)
    return section1 + capabilities_total(_field(evaluation, "rubric"))


def band_points(band: Band, weight: float) -> float:
    return round(weight * BAND_FRACTIONS[band], 2)


def band_from_count(count: int) -> Band:
    if count >= 5:
        return Band.HIGH
    if count == 4:
        return Band.EXCEEDS
    if count == 3:
        return Band.MEETS
    if count == 2:
        return Band.PARTIAL
    return Band.NEEDS


def band_from_percentage(pct: float, thresholds: Optional[Sequence[float]] = None) -> Band:
    """Map a 0-100 percentage onto a band using descending thresholds."""
    thresholds = list(thresholds or DEFAULT_TEACHING_BANDS)
    for band, threshold in zip(_DESCENDING_BANDS, thresholds):
        if pct >= threshold:
            return band
    return Band.NEEDS


def service_points(count: int, points_per_item: float, max_points: float) -> float:
    return float(min(max(count, 0) * points_per_item, max_points))


def research_points(band: Band, weight: float, research_map: Optional[Dict[str, float]] = None) -> float:
    """Explicit research_map entry wins; otherwise the band's share of the weight."""
    if research_map and band.value in research_map:
        return float(research_map[band.value])
    return band_points(band, weight)


def score_performance(
    research_band: Band,
    university_service_count: int,
    community_service_count: int,
    teaching_eval_avg: float,
    config: Any,
) -> Dict[str, Any]:
    """
    Turn the performance rubric inputs into category points using a grading config
    (anything exposing the GradingConfig attributes).
    """
    teaching_band = band_from_percentage(teaching_eval_avg, config.teaching_bands)
    result = {
        "research_band": research_band.value,
        "research_pts": research_points(research_band, config.research_weight, config.research_map),
        "university_service_band": band_from_count(university_service_count).value,
        "university_service_pts": service_points(
            university_service_count, config.service_points_per_item, config.service_max_points
        ),
        "community_service_band": band_from_count(community_service_count).value,
        "community_service_pts": service_points(
            community_service_count, config.service_points_per_item, config.service_max_points
        ),
        "teaching_quality_band": teaching_band.value,
        "teaching_quality_pts": band_points(teaching_band, config.teaching_quality_weight),
    }
    result["performance_pts"] = sum(result[name] for name in CATEGORY_FIELDS)
    return result


def score_capabilities(selections: CapabilitiesSelections) -> Tuple[float, Band, Dict[str, str]]:
    """Sum the selected capability bands; returns (total, overall band, per-dimension bands)."""
    chosen = {k: v for k, v in selections.model_dump().items() if v is not None}
    total = float(sum(CAPABILITY_POINTS[Band(v)] for v in chosen.values()))
    # Overall band is judged against the maximum for the dimensions actually rated
    ceiling = CAPABILITY_POINTS[Band.HIGH] * len(chosen)
    overall = band_from_percentage(total / ceiling * 100 if ceiling else 0)
    return total, overall, {k: Band(v).value for k, v in chosen.items()}
