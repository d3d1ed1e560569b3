import asyncio
from datetime import datetime
from typing import Collection, List

from fleet_metrics.core.errors import QueryTimeout
from fleet_metrics.domain.models import MetricKind, ProcessSample, RawSample
from fleet_metrics.infrastructure.clickhouse.client import CancelToken, SampleStore
from fleet_metrics.utils.concurrency import run_blocking


class SampleReader:
    """Async face of the sample store.

    Each call is the only suspension point of a query pipeline. A ``timeout``
    bounds the call; expiry raises ``QueryTimeout``. On expiry or when the
    caller is cancelled, the worker thread's store read is cancelled too, so
    it stops retrying and drops its connection.
    """

    def __init__(self, store: SampleStore):
        self.store = store

    async def _bounded(self, timeout: float | None, func, *args):
        token = CancelToken()
        try:
            return await asyncio.wait_for(
                run_blocking(func, *args, cancel=token), timeout
            )
        except asyncio.TimeoutError as exc:
            token.cancel()
            raise QueryTimeout(f"sample fetch exceeded {timeout}s") from exc
        except asyncio.CancelledError:
            token.cancel()
            raise

    async def fetch(
        self,
        entity_ids: Collection[str],
        metric_kind: MetricKind,
        since: datetime,
        timeout: float | None = None,
    ) -> List[RawSample]:
        return await self._bounded(
            timeout, self.store.fetch, entity_ids, metric_kind, since
        )

    async def fetch_process_samples(
        self,
        entity_ids: Collection[str],
        since: datetime,
        timeout: float | None = None,
    ) -> List[ProcessSample]:
        return await self._bounded(
            timeout, self.store.fetch_process_samples, entity_ids, since
        )
