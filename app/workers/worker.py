from __future__ import annotations

from app.core.logger import init_logging
from app.workers.celery_app import celery_app


def main() -> None:
    """Launch the Celery worker with embedded beat for the threshold scan."""
    init_logging()
    celery_app.worker_main(["worker", "--beat", "--loglevel=info"])


if __name__ == "__main__":
    main()
