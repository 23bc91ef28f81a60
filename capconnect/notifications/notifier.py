import logging
import uuid
from typing import Optional, Union

from sqlalchemy.orm import Session

from capconnect.database.models import Notification

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("view", "commitment", "compliance", "general")


def notify_user(
    db: Session,
    user_id: Union[str, uuid.UUID],
    message: str,
    type: str = "general",
    related_id: Optional[Union[str, uuid.UUID]] = None,
) -> Notification:
    """
    Add a notification row for `user_id` to the current unit of work.

    The row is committed with the caller's transaction, so a failed request
    never leaves a dangling notification behind.
    """
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type}")

    notification = Notification(
        user_id=user_id,
        message=message,
        type=type,
        related_id=str(related_id) if related_id is not None else None,
    )
    db.add(notification)
    logger.debug("Queued %s notification for user_id=%s", type, user_id)
    return notification


def format_amount(amount) -> str:
    """50000 -> '50,000'; cents are shown only when present."""
    if amount == int(amount):
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def notify_investment_commitment(db: Session, founder_id, company_id, amount) -> Notification:
    return notify_user(
        db,
        founder_id,
        f"New investment commitment of ${format_amount(amount)} from an investor",
        type="commitment",
        related_id=company_id,
    )
