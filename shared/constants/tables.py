class Tables:
    """Centralised sample store table definitions"""

    METRICS = "metrics"
    PROCESS_SNAPSHOTS = "process_snapshots"
    SERVERS = "servers"

    @classmethod
    def qualified(cls, database: str, table: str) -> str:
        """Return ``database.table`` for use in hand-built queries."""
        if not database:
            return table
        return f"{database}.{table}"
