# assessment_engine/services/notification_service.py
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from assessment_engine.core.config import settings
from assessment_engine.db.upsert import insert_or_ignore
from assessment_engine.models.notification import Notification, NotificationPreference
from assessment_engine.schemas.notification import PreferencesPublic, PreferencesUpdate
from assessment_engine.services.errors import NotificationNotFound
from assessment_engine.workers import queue as notification_queue

logger = logging.getLogger(__name__)

# quiet hours may be cleared with an explicit null; toggles may not
_NULLABLE_PREFERENCE_FIELDS = {"quiet_hours_start", "quiet_hours_end"}


# ─── Outbound notifications ─────────────────────────────────────

def notify(
    user_id: int,
    notif_type: str,
    title: str,
    body: str,
    data: Optional[dict] = None,
) -> None:
    """
    Fire-and-forget: hand the notification to the worker queue.

    Delivery and retries belong to the worker, so a failure to enqueue is
    logged and never fails the lifecycle operation that triggered it.
    """
    if not settings.NOTIFICATIONS_ENABLED:
        return
    try:
        job_id = notification_queue.enqueue_notification_task(
            user_id, notif_type, title, body, data
        )
        logger.info(f"Enqueued {notif_type} notification for user {user_id} (job {job_id})")
    except Exception as e:
        logger.error(
            f"Could not enqueue {notif_type} notification for user {user_id}: {e}",
            exc_info=True,
        )


def create_notification(
    db: Session,
    *,
    user_id: int,
    notif_type: str,
    title: str,
    body: str,
    data: Optional[dict] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=notif_type,
        title=title,
        body=body,
        data=data,
        channel="in_app",
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def list_notifications(
    db: Session,
    *,
    user_id: int,
    limit: int = 20,
    offset: int = 0,
    unread_only: bool = False,
) -> tuple[List[Notification], int]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    total = query.count()
    items = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return items, total


def mark_read(db: Session, *, user_id: int, notification_id: int) -> None:
    result = db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True)
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotificationNotFound()
    db.commit()


# ─── Preferences ────────────────────────────────────────────────

def get_preferences(db: Session, user_id: int) -> PreferencesPublic:
    """Stored preferences, or the all-enabled defaults when none exist yet."""
    prefs = db.get(NotificationPreference, user_id)
    if prefs is None:
        return PreferencesPublic(user_id=user_id)
    return PreferencesPublic.model_validate(prefs)


def update_preferences(
    db: Session,
    *,
    user_id: int,
    obj_in: PreferencesUpdate,
) -> PreferencesPublic:
    """
    Field-level PATCH: make sure the row exists, then update only the
    columns the caller actually sent. Omitted fields keep their value.
    """
    insert_or_ignore(
        db,
        NotificationPreference,
        {"user_id": user_id},
        conflict_columns=["user_id"],
    )

    changes = {
        field: value
        for field, value in obj_in.model_dump(exclude_unset=True).items()
        if value is not None or field in _NULLABLE_PREFERENCE_FIELDS
    }
    if changes:
        db.execute(
            update(NotificationPreference)
            .where(NotificationPreference.user_id == user_id)
            .values(**changes)
        )
    db.commit()

    # the bulk UPDATE bypasses the identity map
    db.expire_all()
    logger.info(f"Updated notification preferences for user {user_id}: {sorted(changes)}")
    return get_preferences(db, user_id)
