import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import UUID4
from sqlalchemy.orm import Session

from capconnect import demo
from capconnect.api.deps import get_current_user, notification_reader
from capconnect.api.schemas import NotificationFeed, NotificationOut, UpdatedCount
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import Notification, User
from capconnect.formatting import format_time_ago, unread_badge

logger = logging.getLogger(__name__)
router = APIRouter()


def notification_out(notification: Notification, now: datetime.datetime) -> NotificationOut:
    return NotificationOut(
        id=str(notification.id),
        message=notification.message,
        type=notification.type,
        is_read=notification.is_read,
        created_at=notification.created_at,
        related_id=notification.related_id,
        time_ago=format_time_ago(notification.created_at, now),
    )


@router.get("/notifications", response_model=NotificationFeed)
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    since: Optional[datetime.datetime] = Query(None, description="Only rows created after this instant"),
    user: Optional[User] = Depends(notification_reader),
    db: Session = Depends(get_db),
):
    """
    Newest notifications first. Clients poll with `since` set to the newest
    `created_at` they already hold.
    """
    if user is None:
        return demo.notification_feed()

    if since is not None and since.tzinfo is not None:
        since = since.astimezone(datetime.timezone.utc).replace(tzinfo=None)

    now = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
    rows = crud.list_notifications(db, user.id, limit=limit, since=since)
    unread = crud.count_unread_notifications(db, user.id)
    return NotificationFeed(
        notifications=[notification_out(n, now) for n in rows],
        unread_count=unread,
        badge=unread_badge(unread),
    )


@router.post("/notifications/read-all", response_model=UpdatedCount)
def mark_all_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UpdatedCount:
    updated = crud.mark_all_notifications_read(db, user.id)
    logger.info("Marked %d notifications read for user %s", updated, user.id)
    return UpdatedCount(updated=updated)


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: UUID4 = Path(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NotificationOut:
    notification = crud.get_notification(db, user.id, notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    notification.is_read = True
    db.commit()
    return notification_out(notification, datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None))


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: UUID4 = Path(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    notification = crud.get_notification(db, user.id, notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    db.delete(notification)
    db.commit()
