import asyncio

import pytest

from careflow.core.errors import InvalidStateTransition, NoCandidatesFound, RequestNotFound
from careflow.services.finder import NearbyProviderFinder
from careflow.services.matching import RequestMatcher
from tests.conftest import make_provider, make_request

pytestmark = pytest.mark.anyio

@pytest.fixture
def matcher(provider_store, request_store):
    return RequestMatcher(request_store, NearbyProviderFinder(provider_store))

async def test_urgent_request_ranks_low_wait_first(matcher, provider_store, request_store):
    await provider_store.insert(make_provider("P1", miles=2, wait=15), provider_id="p1")
    await provider_store.insert(make_provider("P2", miles=1, wait=45), provider_id="p2")
    await request_store.insert(make_request("r1", urgency=1))

    ranked = await matcher.match_request("r1")

    assert [c.provider_id for c in ranked] == ["p1", "p2"]
    assert ranked[0].score == 1.0
    assert ranked[1].score == pytest.approx(0.965 * 0.8125 * 0.8)

    # ranking is read-only
    assert (await request_store.get("r1")).status == "pending"

async def test_only_requested_service_is_considered(matcher, provider_store, request_store):
    await provider_store.insert(make_provider("Dentist", miles=1, services=["dental"]), provider_id="d")
    await request_store.insert(make_request("r1", service="urgent_care"))
    assert await matcher.match_request("r1") == []

async def test_missing_request(matcher):
    with pytest.raises(RequestNotFound):
        await matcher.match_request("nope")

async def test_ties_break_on_distance_then_id(matcher, provider_store, request_store):
    await provider_store.insert(make_provider("B", miles=4), provider_id="b")
    await provider_store.insert(make_provider("A", miles=4), provider_id="a")
    await provider_store.insert(make_provider("C", miles=2), provider_id="c")
    await provider_store.update_wait_time("c", 40)
    await request_store.insert(make_request("r1", urgency=3))

    ranked = await matcher.match_request("r1")
    tied = [c for c in ranked if c.provider_id in ("a", "b")]
    assert tied[0].score == tied[1].score
    assert [c.provider_id for c in tied] == ["a", "b"]

async def test_candidate_limit_and_radius(provider_store, request_store):
    for i in range(5):
        await provider_store.insert(make_provider(f"P{i}", miles=i + 1), provider_id=f"p{i}")
    await provider_store.insert(make_provider("Out", miles=8), provider_id="out")
    await request_store.insert(make_request("r1"))

    m = RequestMatcher(request_store, NearbyProviderFinder(provider_store), search_radius_miles=6, candidate_limit=3)
    ranked = await m.match_request("r1")

    assert [c.provider_id for c in ranked] == ["p0", "p1", "p2"]
    # scored against the same 6 mile radius used for the search
    assert ranked[0].score == pytest.approx(0.3 + 0.7 * (1 - 1 / 6))

async def test_commit_match(matcher, request_store):
    await request_store.insert(make_request("r1"))

    assert await matcher.commit_match("r1", "p1", 0.8) is True

    r = await request_store.get("r1")
    assert (r.status, r.matched_provider_id, r.match_score) == ("matched", "p1", 0.8)

async def test_commit_is_idempotent(matcher, request_store):
    await request_store.insert(make_request("r1"))
    await matcher.commit_match("r1", "p1", 0.8)

    assert await matcher.commit_match("r1", "p1", 0.8) is False
    r = await request_store.get("r1")
    assert (r.status, r.matched_provider_id, r.match_score) == ("matched", "p1", 0.8)

async def test_commit_does_not_overwrite_existing_match(matcher, request_store):
    await request_store.insert(make_request("r1"))
    await matcher.commit_match("r1", "p1", 0.8)

    with pytest.raises(InvalidStateTransition):
        await matcher.commit_match("r1", "p2", 0.9)
    assert (await request_store.get("r1")).matched_provider_id == "p1"

@pytest.mark.parametrize("status", ["fulfilled", "cancelled"])
async def test_commit_rejected_from_terminal_state(matcher, request_store, status):
    await request_store.insert(make_request("r1", status=status))
    with pytest.raises(InvalidStateTransition) as ei:
        await matcher.commit_match("r1", "p1", 0.5)
    assert ei.value.src == status

async def test_commit_unknown_request(matcher):
    with pytest.raises(RequestNotFound):
        await matcher.commit_match("ghost", "p1", 0.5)

async def test_concurrent_commits_single_winner(matcher, request_store):
    await request_store.insert(make_request("r1"))

    results = await asyncio.gather(
        matcher.commit_match("r1", "p1", 0.7),
        matcher.commit_match("r1", "p2", 0.9),
        return_exceptions=True,
    )

    wins = [r for r in results if r is True]
    losses = [r for r in results if isinstance(r, InvalidStateTransition)]
    assert len(wins) == 1 and len(losses) == 1
    assert (await request_store.get("r1")).matched_provider_id == "p1"

async def test_match_and_commit(matcher, provider_store, request_store):
    await provider_store.insert(make_provider("P1", miles=2, wait=15), provider_id="p1")
    await provider_store.insert(make_provider("P2", miles=1, wait=45), provider_id="p2")
    await request_store.insert(make_request("r1", urgency=1))

    out = await matcher.match_and_commit("r1")

    assert out.matched and out.provider_id == "p1" and out.score == 1.0
    assert len(out.candidates) == 2
    assert (await request_store.get("r1")).status == "matched"

async def test_match_and_commit_no_candidates(matcher, request_store):
    await request_store.insert(make_request("r1"))
    with pytest.raises(NoCandidatesFound):
        await matcher.match_and_commit("r1")
    assert (await request_store.get("r1")).status == "pending"

@pytest.mark.parametrize("status", ["cancelled", "fulfilled"])
async def test_match_and_commit_rejects_closed_request(matcher, provider_store, request_store, status):
    await provider_store.insert(make_provider("P1", miles=2, wait=15), provider_id="p1")
    await request_store.insert(make_request("r1", status=status))
    with pytest.raises(InvalidStateTransition):
        await matcher.match_and_commit("r1")
    assert (await request_store.get("r1")).status == status

async def test_equal_scores_prefer_nearer(matcher, provider_store, request_store):
    # capacity scoring ignores distance, so both score the same
    await provider_store.insert(make_provider("Far", miles=3, wait=20), provider_id="a-far")
    await provider_store.insert(make_provider("Near", miles=1, wait=20), provider_id="z-near")
    await request_store.insert(make_request("r1", urgency=3))

    ranked = await matcher.match_request("r1", algorithm="capacity")

    assert ranked[0].score == ranked[1].score
    assert [c.provider_id for c in ranked] == ["z-near", "a-far"]
