# careflow/services/scoring.py
from ..schemas import NearbyProviderResult, PatientRequest

# wait time at which the wait factor bottoms out
WAIT_CEILING_MIN = 120.0

# urgency_level <= this counts as urgent
URGENT_LEVEL = 2
URGENT_LOW_WAIT_MIN = 30
URGENT_LOW_WAIT_BOOST = 1.2
URGENT_HIGH_WAIT_PENALTY = 0.8

OUTREACH_TYPES = {"mobile", "pop_up"}
OUTREACH_BOOST = 1.2

ALGORITHMS = ("distance", "capacity", "fragility", "smart")

def distance_multiplier(distance_miles: float, radius_miles: float) -> float:
    factor = max(0.0, 1 - distance_miles / radius_miles)
    return 0.3 + 0.7 * factor

def wait_multiplier(wait_minutes: int) -> float:
    factor = max(0.0, 1 - wait_minutes / WAIT_CEILING_MIN)
    return 0.5 + 0.5 * factor

def urgency_multiplier(urgency_level: int, wait_minutes: int | None) -> float:
    # unknown wait is not "zero wait": no boost, no penalty
    if urgency_level > URGENT_LEVEL or wait_minutes is None:
        return 1.0
    return URGENT_LOW_WAIT_BOOST if wait_minutes < URGENT_LOW_WAIT_MIN else URGENT_HIGH_WAIT_PENALTY

def score(
    request: PatientRequest,
    candidate: NearbyProviderResult,
    search_radius_miles: float,
    algorithm: str = "smart",
) -> float:
    """
    Match score in [0, 1] for a (request, candidate) pair.

    `search_radius_miles` must be the radius the candidate was searched with,
    otherwise scores from different searches are not comparable.

    smart     - distance x wait x urgency
    distance  - distance x urgency
    capacity  - wait x urgency
    fragility - smart, plus a boost for mobile / pop-up outreach providers
    """
    if search_radius_miles <= 0:
        raise ValueError("search_radius_miles must be positive")
    if algorithm not in ALGORITHMS:
        raise ValueError(f"unknown algorithm {algorithm!r}")

    wait = candidate.current_wait_time
    s = 1.0

    if algorithm != "capacity":
        s *= distance_multiplier(candidate.distance_miles, search_radius_miles)

    if algorithm != "distance" and wait is not None:
        s *= wait_multiplier(wait)

    if algorithm == "fragility" and candidate.provider_type in OUTREACH_TYPES:
        s *= OUTREACH_BOOST

    s *= urgency_multiplier(request.urgency_level, wait)

    return min(1.0, max(0.0, s))
