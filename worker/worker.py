"""RQ worker for audit jobs."""

import logging

from redis import Redis
from rq import Worker, Queue
from server.config import settings


def main() -> None:
    """Start worker process."""
    logging.basicConfig(level=settings.log_level.upper(), format='[%(levelname)s] %(message)s')
    redis = Redis.from_url(settings.redis_url)
    worker = Worker([Queue('default', connection=redis)], connection=redis)
    worker.work()


if __name__ == '__main__':
    main()
