# assessment_engine/workers/queue.py
import logging
from typing import Any, Callable, Dict

from redis import Redis
from rq import Queue

from assessment_engine.core.config import settings

logger = logging.getLogger(__name__)

_redis_conn: Redis | None = None
_queues: Dict[str, Queue] = {}


def get_redis_connection() -> Redis:
    global _redis_conn
    if _redis_conn is None:
        _redis_conn = Redis.from_url(settings.REDIS_URL)
    return _redis_conn


def get_queue(name: str) -> Queue:
    queue = _queues.get(name)
    if queue is None:
        queue = Queue(
            name,
            connection=get_redis_connection(),
            default_timeout=settings.NOTIFICATION_JOB_TIMEOUT,
        )
        _queues[name] = queue
    return queue


def enqueue_job(
    func: Callable[..., Any],
    *args: Any,
    queue_name: str,
    description: str | None = None,
) -> str:
    job = get_queue(queue_name).enqueue(
        func,
        *args,
        result_ttl=settings.NOTIFICATION_RESULT_TTL,
        failure_ttl=settings.NOTIFICATION_FAILURE_TTL,
        description=description,
    )
    logger.debug(f"Enqueued job {job.id} on {queue_name}")
    return job.id


def enqueue_notification_task(
    user_id: int,
    notif_type: str,
    title: str,
    body: str,
    data: dict | None = None,
) -> str:
    from assessment_engine.workers.tasks import notification_task

    return enqueue_job(
        notification_task,
        user_id,
        notif_type,
        title,
        body,
        data,
        queue_name=settings.NOTIFICATION_QUEUE_NAME,
        description=f"{notif_type} -> user {user_id}",
    )
