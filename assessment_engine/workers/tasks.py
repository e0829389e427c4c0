"""
Notification Tasks for Worker
These tasks are executed by RQ workers so that lifecycle requests never wait
on notification delivery.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from assessment_engine.db.session import SessionLocal
from assessment_engine.services import notification_service

logger = logging.getLogger(__name__)


def notification_task(
    user_id: int,
    notif_type: str,
    title: str,
    body: str,
    data: dict | None = None,
) -> dict:
    """
    Worker task that stores an in-app notification for ``user_id``.

    Returns:
        Dictionary with the outcome, kept as the RQ job result
    """
    db = SessionLocal()
    try:
        logger.info(f"Starting notification task type={notif_type} user={user_id}")

        notification = notification_service.create_notification(
            db,
            user_id=user_id,
            notif_type=notif_type,
            title=title,
            body=body,
            data=data,
        )

        logger.info(f"Stored notification {notification.id} for user {user_id}")
        return {
            "status": "success",
            "notification_id": notification.id,
            "user_id": user_id,
            "type": notif_type,
        }

    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Failed to store {notif_type} notification for user {user_id}: {e}",
            exc_info=True,
        )
        # re-raise so RQ marks the job failed and keeps it for inspection
        raise

    finally:
        db.close()
