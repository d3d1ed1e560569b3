from typing import Collection, Dict

from fleet_metrics.infrastructure.clickhouse import queries
from fleet_metrics.infrastructure.clickhouse.client import ClickHouseReader


class ServerDirectory(ClickHouseReader):
    """Resolves server ids to the names shown next to their series."""

    def resolve(self, entity_ids: Collection[str]) -> Dict[str, str]:
        """Map known ids to a display name: name, else hostname, else the id.

        Ids the directory does not know are left out of the result.
        """
        if not entity_ids:
            return {}
        rows = self.execute(
            queries.server_names_query(self.database),
            {"entity_ids": tuple(entity_ids)},
            "directory",
        )
        return {
            str(server_id): (name or hostname or str(server_id))
            for server_id, name, hostname in rows
        }
