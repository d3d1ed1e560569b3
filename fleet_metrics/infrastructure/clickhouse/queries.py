"""SQL used against the raw sample store.

Table names are formatted in by the caller (``Tables.qualified``); values
always go through driver parameters.
"""

from shared.constants import Tables

METRIC_SAMPLES = """
SELECT
    server_id,
    timestamp,
    {columns}
FROM {table}
WHERE server_id IN %(entity_ids)s
    AND timestamp >= %(since)s
ORDER BY server_id, timestamp
"""

PROCESS_SAMPLES = """
SELECT
    server_id,
    timestamp,
    process_name,
    cpu_seconds_total,
    memory_bytes,
    num_procs
FROM {table}
WHERE server_id IN %(entity_ids)s
    AND timestamp >= %(since)s
ORDER BY server_id, process_name, timestamp
"""

SERVER_NAMES = """
SELECT
    server_id,
    name,
    hostname
FROM {table}
WHERE server_id IN %(entity_ids)s
"""

PING = "SELECT 1"


def metric_samples_query(database: str, columns) -> str:
    return METRIC_SAMPLES.format(
        columns=",\n    ".join(columns),
        table=Tables.qualified(database, Tables.METRICS),
    )


def process_samples_query(database: str) -> str:
    return PROCESS_SAMPLES.format(
        table=Tables.qualified(database, Tables.PROCESS_SNAPSHOTS)
    )


def server_names_query(database: str) -> str:
    return SERVER_NAMES.format(table=Tables.qualified(database, Tables.SERVERS))
