# assessment_engine/workers/worker_main.py
import logging

from rq import SimpleWorker

from assessment_engine.core.config import settings
from assessment_engine.core.logging_config import setup_logging
from assessment_engine.workers.queue import get_queue, get_redis_connection

logger = logging.getLogger(__name__)


def main():
    setup_logging()
    queue_names = [settings.NOTIFICATION_QUEUE_NAME]
    queues = [get_queue(name) for name in queue_names]

    # SimpleWorker runs jobs in-process, no fork per job
    worker = SimpleWorker(queues, connection=get_redis_connection())
    logger.info(f"Worker listening on {', '.join(queue_names)}")
    worker.work()


if __name__ == "__main__":
    main()
