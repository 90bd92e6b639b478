from datetime import datetime, timedelta, timezone

import pytest

from careflow.core.errors import StoreUnavailable
from careflow.repos.inmemory import InMemoryRequestStore
from careflow.services.stats import RequestStatistics, plot_by_service_png
from tests.conftest import T0, make_request

pytestmark = pytest.mark.anyio

async def _seed(store):
    await store.insert(make_request("a", service="dental", minutes=0))
    await store.insert(make_request("b", service="dental", urgency=1, minutes=10,
                                    status="matched", matched_provider_id="p1", match_score=0.8))
    await store.insert(make_request("c", service="pediatric", minutes=20,
                                    status="fulfilled", matched_provider_id="p2", match_score=0.6))
    await store.insert(make_request("d", service="general", minutes=30, status="cancelled"))

async def test_counts_and_average(request_store):
    await _seed(request_store)
    stats = await RequestStatistics(request_store).get_statistics()

    assert stats.total == 4
    assert (stats.pending, stats.matched, stats.fulfilled, stats.cancelled) == (1, 1, 1, 1)
    assert stats.by_service == {"dental": 2, "pediatric": 1, "general": 1}
    assert stats.by_urgency == {3: 3, 1: 1}
    assert stats.average_match_score == pytest.approx(0.7)

async def test_services_without_requests_are_absent(request_store):
    await _seed(request_store)
    stats = await RequestStatistics(request_store).get_statistics()
    assert "vaccination" not in stats.by_service

async def test_date_bounds_are_inclusive(request_store):
    await _seed(request_store)
    stats = await RequestStatistics(request_store).get_statistics(
        T0 + timedelta(minutes=10), T0 + timedelta(minutes=20)
    )
    assert stats.total == 2
    assert stats.by_service == {"dental": 1, "pediatric": 1}

async def test_naive_bounds_are_utc(request_store):
    await _seed(request_store)
    stats = await RequestStatistics(request_store).get_statistics(start=datetime(2025, 1, 1, 12, 15))
    assert stats.total == 2

async def test_empty_range_has_zero_average(request_store):
    await _seed(request_store)
    far_future = datetime(2030, 1, 1, tzinfo=timezone.utc)
    stats = await RequestStatistics(request_store).get_statistics(far_future, None)
    assert stats.total == 0
    assert stats.average_match_score == 0.0
    assert stats.by_service == {}

async def test_unmatched_only_has_zero_average(request_store):
    await request_store.insert(make_request("a"))
    stats = await RequestStatistics(request_store).get_statistics()
    assert stats.average_match_score == 0.0

async def test_store_failure_is_not_zeroed():
    class Down(InMemoryRequestStore):
        async def list_by_date_range(self, start=None, end=None):
            raise StoreUnavailable("down")

    with pytest.raises(StoreUnavailable):
        await RequestStatistics(Down()).get_statistics()

async def test_plot_is_png(request_store):
    await _seed(request_store)
    buf = await plot_by_service_png(RequestStatistics(request_store))
    assert buf.read(8) == b"\x89PNG\r\n\x1a\n"
