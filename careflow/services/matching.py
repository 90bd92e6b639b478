# careflow/services/matching.py
import logging
from typing import List

from ..core.errors import RequestNotFound, InvalidStateTransition, NoCandidatesFound
from ..schemas import MatchCandidate, MatchOut, PatientRequest, ProviderFilters
from . import scoring

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RADIUS_MILES = 20.0
DEFAULT_CANDIDATE_LIMIT = 10

def rank(candidates: List[MatchCandidate]) -> List[MatchCandidate]:
    # best score first, then nearest, then provider id
    return sorted(candidates, key=lambda c: (-c.score, c.distance_miles, c.provider_id))

class RequestMatcher:
    def __init__(
        self,
        requests,
        finder,
        search_radius_miles: float = DEFAULT_SEARCH_RADIUS_MILES,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ):
        self.requests = requests
        self.finder = finder
        self.search_radius_miles = search_radius_miles
        self.candidate_limit = candidate_limit

    async def load(self, request_id: str) -> PatientRequest:
        req = await self.requests.get(request_id)
        if req is None:
            raise RequestNotFound(request_id)
        return req

    async def match_request(self, request_id: str, algorithm: str = "smart") -> List[MatchCandidate]:
        """
        Ranked candidates for a request. Nothing is persisted here;
        an empty list means no provider is in range.
        """
        req = await self.load(request_id)
        radius = self.search_radius_miles

        # the full candidate set is fetched before anything is scored
        nearby = await self.finder.find_nearby(
            req.location,
            radius,
            ProviderFilters(service_type=req.requested_service),
            self.candidate_limit,
        )
        if not nearby:
            return []

        scored = [
            MatchCandidate(**n.model_dump(), score=scoring.score(req, n, radius, algorithm))
            for n in nearby
        ]
        return rank(scored)

    async def commit_match(self, request_id: str, provider_id: str, score: float) -> bool:
        """
        pending -> matched, as one conditional update.

        Returns True when this call applied the match, False when the request
        already holds exactly this match (idempotent re-apply). Any other
        non-pending state raises InvalidStateTransition.
        """
        if await self.requests.compare_and_set_matched(request_id, provider_id, score, expected_status="pending"):
            logger.info("request %s matched to provider %s (score=%.3f)", request_id, provider_id, score)
            return True

        current = await self.requests.get(request_id)
        if current is None:
            raise RequestNotFound(request_id)
        if (
            current.status == "matched"
            and current.matched_provider_id == provider_id
            and current.match_score == score
        ):
            return False
        raise InvalidStateTransition(request_id, current.status, "matched")

    async def match_and_commit(self, request_id: str, algorithm: str = "smart") -> MatchOut:
        """Explicit single-request match: rank, then commit the top candidate."""
        req = await self.load(request_id)
        # matched stays allowed so an identical re-apply is still a no-op
        if req.status not in ("pending", "matched"):
            raise InvalidStateTransition(req.id, req.status, "matched")

        candidates = await self.match_request(request_id, algorithm)
        if not candidates:
            raise NoCandidatesFound(request_id)

        best = candidates[0]
        await self.commit_match(request_id, best.provider_id, best.score)
        return MatchOut(
            request_id=request_id,
            matched=True,
            provider_id=best.provider_id,
            score=best.score,
            candidates=candidates,
        )
