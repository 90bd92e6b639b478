# careflow/services/auto_match.py
import asyncio
import logging
from dataclasses import dataclass

from ..core.errors import InvalidStateTransition
from ..schemas import PatientRequest

logger = logging.getLogger(__name__)

@dataclass
class AutoMatchReport:
    processed: int = 0
    matched: int = 0
    skipped: int = 0   # no candidates, or lost a race to another committer
    failed: int = 0

class AutoMatchScheduler:
    """
    Batch matcher for the pending backlog.

    Requests are handled most-urgent first, then oldest first; the order comes
    from sorting once per run. One failing request never stops the batch.
    No locking of its own: concurrent runs are made safe by the conditional
    commit in RequestMatcher.
    """

    def __init__(self, requests, matcher, timeout_seconds: float | None = None):
        self.requests = requests
        self.matcher = matcher
        self.timeout_seconds = timeout_seconds
        self._committing = None

    async def _attempt(self, req: PatientRequest) -> bool:
        self._committing = None
        candidates = await self.matcher.match_request(req.id)
        if not candidates:
            return False
        best = candidates[0]
        self._committing = (best.provider_id, best.score)
        return await self.matcher.commit_match(req.id, best.provider_id, best.score)

    async def _landed_after_timeout(self, req: PatientRequest) -> bool:
        """True when a timed-out attempt's own commit was applied anyway."""
        if self._committing is None:
            return False
        try:
            current = await self.requests.get(req.id)
        except Exception:
            logger.exception("auto-match: could not re-read request %s after timeout", req.id)
            return False
        if current is None or current.status != "matched":
            return False
        if (current.matched_provider_id, current.match_score) != self._committing:
            return False
        logger.info("auto-match: request %s was matched despite the timeout", req.id)
        return True

    async def run(self) -> AutoMatchReport:
        report = AutoMatchReport()
        backlog = await self.requests.list_pending()

        for req in backlog:
            report.processed += 1
            self._committing = None
            try:
                if self.timeout_seconds:
                    applied = await asyncio.wait_for(self._attempt(req), self.timeout_seconds)
                else:
                    applied = await self._attempt(req)
            except InvalidStateTransition as ex:
                logger.info("auto-match: skipping request %s: %s", req.id, ex)
                report.skipped += 1
                continue
            except asyncio.TimeoutError:
                logger.warning("auto-match: request %s timed out after %ss", req.id, self.timeout_seconds)
                # the store may have applied the commit before the cancel landed
                applied = await self._landed_after_timeout(req)
                if not applied:
                    report.failed += 1
                    continue
            except Exception:
                logger.exception("auto-match: error matching request %s", req.id)
                report.failed += 1
                continue

            if applied:
                report.matched += 1
            else:
                report.skipped += 1

        logger.info(
            "auto-match: processed=%d matched=%d skipped=%d failed=%d",
            report.processed, report.matched, report.skipped, report.failed,
        )
        return report

    async def run_auto_match(self) -> int:
        return (await self.run()).matched
