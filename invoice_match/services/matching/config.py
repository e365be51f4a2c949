from pydantic import BaseModel


class MatchConfig(BaseModel):
    """Weights and thresholds for invoice-to-job matching (loaded from environment)"""

    # Street address: exact after normalization, else token overlap above threshold
    address_exact_points: int = 40
    address_fuzzy_points: int = 25
    address_fuzzy_threshold: float = 0.6

    city_points: int = 15
    zip_points: int = 10

    # Ship-to name vs job site name
    site_name_contains_points: int = 20
    site_name_fuzzy_points: int = 10
    site_name_fuzzy_threshold: float = 0.5

    customer_name_contains_points: int = 15

    # (max days apart, points), checked in order; first band that fits wins
    date_bands: list[tuple[float, int]] = [(3, 15), (7, 10), (14, 5)]

    prior_match_penalty: int = 50
    prior_lookup_fail_open: bool = True

    min_score: int = 50
    high_confidence_score: int = 70
    # Only reachable if min_score is lowered below medium_confidence_score
    medium_confidence_score: int = 50

    eligible_statuses: list[str] = ["completed", "in-progress"]
