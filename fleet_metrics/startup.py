from fleet_metrics.core.config import settings
from fleet_metrics.core.logger import configure_logging, get_logger

logger = get_logger("startup")


def initialize_application():
    configure_logging()
    logger.info(
        "application_initialized",
        extra={
            "clickhouse_host": settings.clickhouse_host,
            "clickhouse_db": settings.clickhouse_db,
            "query_timeout_seconds": settings.query_timeout_seconds,
            "timeline_max_points": settings.engine_timeline_max_points,
        },
    )
