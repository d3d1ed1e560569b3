import uvicorn

from fleet_metrics.core.config import settings


def main():
    uvicorn.run(
        "fleet_metrics.main:app",
        host=settings.http_host,
        port=settings.http_port,
        log_config=None,  # keep the JSON root handler installed at startup
    )


if __name__ == "__main__":
    main()
