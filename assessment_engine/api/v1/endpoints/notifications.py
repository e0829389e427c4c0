# assessment_engine/api/v1/endpoints/notifications.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assessment_engine.core.security import Principal, get_current_principal
from assessment_engine.db.session import get_db
from assessment_engine.schemas.notification import (
    NotificationPage,
    PreferencesPublic,
    PreferencesUpdate,
)
from assessment_engine.services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationPage)
def list_notifications(
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    unread_only: bool = False,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    items, total = notification_service.list_notifications(
        db,
        user_id=principal.user_id,
        limit=limit,
        offset=offset,
        unread_only=unread_only,
    )
    return NotificationPage(data=items, total=total)


@router.get("/preferences", response_model=PreferencesPublic)
def get_preferences(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return notification_service.get_preferences(db, principal.user_id)


@router.put("/preferences", response_model=PreferencesPublic)
def update_preferences(
    obj_in: PreferencesUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Only the fields present in the body change; the rest keep their value.
    """
    return notification_service.update_preferences(db, user_id=principal.user_id, obj_in=obj_in)


@router.put("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    notification_service.mark_read(db, user_id=principal.user_id, notification_id=notification_id)
    return None
