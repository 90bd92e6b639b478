# careflow/services/stats.py
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from datetime import datetime, timezone
from io import BytesIO
from typing import Optional

from ..schemas import RequestStats

def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # naive bounds are taken to be UTC
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)

class RequestStatistics:
    def __init__(self, requests):
        self.requests = requests

    async def get_statistics(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> RequestStats:
        """
        Counts by status / service / urgency and the mean match score for
        requests created within [start, end] (both inclusive, both optional).
        Store errors propagate; zeroed stats are never returned on failure.
        """
        rows = await self.requests.list_by_date_range(as_utc(start), as_utc(end))

        stats = RequestStats(total=len(rows))
        by_service: dict = {}
        by_urgency: dict = {}
        score_sum = 0.0
        score_count = 0

        for r in rows:
            setattr(stats, r.status, getattr(stats, r.status) + 1)
            by_service[r.requested_service] = by_service.get(r.requested_service, 0) + 1
            by_urgency[r.urgency_level] = by_urgency.get(r.urgency_level, 0) + 1
            if r.match_score is not None:
                score_sum += r.match_score
                score_count += 1

        stats.by_service = by_service
        stats.by_urgency = by_urgency
        stats.average_match_score = score_sum / score_count if score_count else 0.0
        return stats

async def plot_by_service_png(statistics: RequestStatistics, start=None, end=None) -> BytesIO:
    """
    Bar chart of request counts per service for the range.
    Returns a BytesIO PNG buffer.
    """
    stats = await statistics.get_statistics(start, end)
    labels = sorted(stats.by_service) or ["No data"]
    values = [stats.by_service[k] for k in labels] if stats.by_service else [0]

    fig = plt.figure()
    plt.bar(labels, values)
    plt.xticks(rotation=30, ha="right")
    plt.title("Patient Requests by Service")
    plt.tight_layout()

    buf = BytesIO()
    fig.savefig(buf, format="png")
    plt.close(fig)
    buf.seek(0)
    return buf
