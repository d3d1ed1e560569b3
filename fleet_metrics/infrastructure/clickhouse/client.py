"""ClickHouse access for raw samples.

``clickhouse_driver.Client`` is synchronous and refuses overlapping queries on
one connection, so every call opens its own client. Callers run these methods
through ``run_blocking`` to keep the event loop free while per-kind fetches
proceed concurrently, and hand in a ``CancelToken`` so an abandoned query stops
talking to the store.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from typing import Any, Callable, Collection, Dict, List, Optional, Sequence

from clickhouse_driver import Client
from clickhouse_driver.errors import Error as ClickHouseError
from clickhouse_driver.errors import NetworkError, SocketTimeoutError

from fleet_metrics.core.config import settings
from fleet_metrics.core.errors import FetchCancelled, StoreUnavailable
from fleet_metrics.core.logger import get_logger
from fleet_metrics.core.metrics import STORE_ERRORS, STORE_FETCH_LATENCY, STORE_RETRIES
from fleet_metrics.domain.fields import KIND_FIELDS
from fleet_metrics.domain.models import MetricKind, ProcessSample, RawSample
from fleet_metrics.infrastructure.clickhouse import queries
from shared.utils.retry import retry

logger = get_logger("clickhouse_client")

# Worth another attempt: the server may simply be restarting.
TRANSIENT_ERRORS = (NetworkError, SocketTimeoutError, ConnectionError, EOFError)


def default_client_factory() -> Client:
    return Client(
        host=settings.clickhouse_host,
        port=settings.clickhouse_port,
        user=settings.clickhouse_user,
        password=settings.clickhouse_password,
        database=settings.clickhouse_db,
        send_receive_timeout=settings.clickhouse_send_receive_timeout,
    )


class CancelToken:
    """Stops a blocking store read from another thread.

    ``cancel()`` wakes a pending backoff sleep and disconnects the client of
    the attempt in flight. No attempt starts after it.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._client: Optional[Client] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        self._event.set()
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            client.disconnect()

    def attach(self, client: Client):
        with self._lock:
            self._client = client

    def detach(self, client: Client):
        with self._lock:
            if self._client is client:
                self._client = None

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise FetchCancelled("store read cancelled")

    def sleep(self, seconds: float):
        self._event.wait(seconds)


class ClickHouseReader:
    """Read-only query helper with retries and error translation."""

    def __init__(
        self,
        client_factory: Callable[[], Client] | None = None,
        database: str | None = None,
        retries: int | None = None,
        retry_base_delay: float | None = None,
    ):
        self.client_factory = client_factory or default_client_factory
        self.database = settings.clickhouse_db if database is None else database
        self.retries = settings.store_fetch_retries if retries is None else retries
        self.retry_base_delay = (
            settings.store_retry_base_delay
            if retry_base_delay is None
            else retry_base_delay
        )

    def _execute_once(
        self, query: str, params: Dict[str, Any], cancel: CancelToken
    ) -> List[tuple]:
        cancel.raise_if_cancelled()
        client = self.client_factory()
        cancel.attach(client)
        try:
            return client.execute(query, params)
        finally:
            cancel.detach(client)
            client.disconnect()

    def execute(
        self,
        query: str,
        params: Dict[str, Any],
        source: str,
        cancel: CancelToken | None = None,
    ) -> List[tuple]:
        token = cancel or CancelToken()

        def _on_retry(attempt: int, exc: BaseException, sleep_for: float):
            token.raise_if_cancelled()
            STORE_RETRIES.inc()
            logger.warning(
                "store_fetch_retry",
                extra={
                    "source": source,
                    "attempt": attempt,
                    "error": str(exc),
                    "sleep_for": round(sleep_for, 2),
                },
            )

        start = time.perf_counter()
        try:
            rows = retry(
                lambda: self._execute_once(query, params, token),
                retries=self.retries,
                base_delay=self.retry_base_delay,
                retry_on=TRANSIENT_ERRORS,
                on_retry=_on_retry,
                sleep=token.sleep,
            )
        except FetchCancelled:
            logger.debug("store_fetch_cancelled", extra={"source": source})
            raise
        except (ClickHouseError, OSError, EOFError) as exc:
            if token.cancelled:
                # The disconnect from cancel() surfaces as a driver error.
                logger.debug("store_fetch_cancelled", extra={"source": source})
                raise FetchCancelled("store read cancelled") from exc
            STORE_ERRORS.labels(source=source).inc()
            logger.error(
                "store_fetch_failed",
                extra={"source": source, "error": str(exc), "error_type": type(exc).__name__},
            )
            raise StoreUnavailable(f"sample store unavailable ({source}): {exc}") from exc
        STORE_FETCH_LATENCY.labels(source=source).observe(time.perf_counter() - start)
        return rows

    def ping(self) -> bool:
        return self.execute(queries.PING, {}, "ping") == [(1,)]


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


class SampleStore(ClickHouseReader):
    def fetch(
        self,
        entity_ids: Collection[str],
        metric_kind: MetricKind,
        since: datetime,
        cancel: CancelToken | None = None,
    ) -> List[RawSample]:
        """Samples of one kind, ordered by entity then timestamp ascending."""
        if not entity_ids:
            return []
        columns: Sequence[str] = KIND_FIELDS[metric_kind].columns
        rows = self.execute(
            queries.metric_samples_query(self.database, columns),
            {"entity_ids": tuple(entity_ids), "since": since},
            metric_kind.value,
            cancel,
        )
        samples = []
        for row in rows:
            fields = {
                name: float(value)
                for name, value in zip(columns, row[2:])
                if value is not None
            }
            samples.append(RawSample(str(row[0]), metric_kind, row[1], fields))
        return samples

    def fetch_process_samples(
        self,
        entity_ids: Collection[str],
        since: datetime,
        cancel: CancelToken | None = None,
    ) -> List[ProcessSample]:
        """Process snapshots; NULL columns stay ``None`` rather than zero."""
        if not entity_ids:
            return []
        rows = self.execute(
            queries.process_samples_query(self.database),
            {"entity_ids": tuple(entity_ids), "since": since},
            "processes",
            cancel,
        )
        return [
            ProcessSample(
                entity_id=str(server_id),
                timestamp=ts,
                process_name=name,
                cpu_seconds_total=_optional_float(cpu),
                memory_bytes=_optional_float(memory),
                num_procs=_optional_float(procs),
            )
            for server_id, ts, name, cpu, memory, procs in rows
        ]
