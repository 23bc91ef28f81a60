import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import UUID4
from sqlalchemy.orm import Session

from capconnect import demo
from capconnect.api.deps import founder_or_demo, get_current_user, investor_or_demo, require_founder, require_investor
from capconnect.api.schemas import DealRoomOut, MarkReadIn, MessageIn, MessageOut, UpdatedCount
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import Message, User
from capconnect.notifications.notifier import notify_user

logger = logging.getLogger(__name__)
router = APIRouter()


def message_out(message: Message) -> MessageOut:
    return MessageOut(
        id=message.id,
        sender_id=message.sender_id,
        sender_name=crud.public_name(message.sender),
        sender_role=message.sender_role,
        content=message.content,
        created_at=message.created_at,
        read=message.read,
    )


def build_thread(messages: List[Message], founder_id, viewer_role: str) -> DealRoomOut:
    """A message is unread for the viewer when the other side sent it and it is still unread."""
    return DealRoomOut(
        founder_id=founder_id,
        messages=[message_out(m) for m in messages],
        unread_count=sum(1 for m in messages if not m.read and m.sender_role != viewer_role),
    )


def _founder_or_404(db: Session, founder_id) -> User:
    founder = crud.get_user(db, founder_id)
    if founder is None or founder.role != "founder":
        raise HTTPException(status_code=404, detail="Founder not found")
    return founder


def _post_message(db: Session, founder_id, sender: User, content: str) -> Message:
    message = Message(
        founder_id=founder_id,
        sender_id=sender.id,
        sender_role=sender.role,
        content=content,
        read=False,
    )
    db.add(message)
    if sender.role == "investor":
        notify_user(
            db,
            founder_id,
            f"New message from {crud.public_name(sender)} in your deal room",
            type="general",
            related_id=founder_id,
        )
    db.commit()
    logger.info("Message %s posted to deal room %s by %s", message.id, founder_id, sender.role)
    return message


# ──────────────────────────────────────────────────────────────────────────────
#  Founder: own thread
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/deal-room", response_model=DealRoomOut)
def read_my_deal_room(
    user: Optional[User] = Depends(founder_or_demo),
    db: Session = Depends(get_db),
):
    if user is None:
        return demo.deal_room("founder")
    return build_thread(crud.thread_messages(db, user.id), user.id, "founder")


@router.post("/deal-room", response_model=MessageOut, status_code=201)
def post_to_my_deal_room(
    message_in: MessageIn,
    user: User = Depends(require_founder),
    db: Session = Depends(get_db),
) -> MessageOut:
    return message_out(_post_message(db, user.id, user, message_in.content))


@router.post("/deal-room/read", response_model=UpdatedCount)
def mark_messages_read(
    payload: MarkReadIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UpdatedCount:
    """
    Mark messages from the other side read. A founder is limited to their own
    thread; an investor may clear founder messages in any thread they can open.
    """
    founder_ids = [user.id] if user.role == "founder" else None
    updated = crud.mark_messages_read(db, payload.message_ids, reader_role=user.role, founder_ids=founder_ids)
    return UpdatedCount(updated=updated)


# ──────────────────────────────────────────────────────────────────────────────
#  Investor: a founder's thread
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/deal-room/{founder_id}", response_model=DealRoomOut)
def read_founder_deal_room(
    founder_id: UUID4 = Path(...),
    user: Optional[User] = Depends(investor_or_demo),
    db: Session = Depends(get_db),
):
    if user is None:
        return demo.deal_room("investor")
    founder = _founder_or_404(db, founder_id)
    return build_thread(crud.thread_messages(db, founder.id), founder.id, "investor")


@router.post("/deal-room/{founder_id}", response_model=MessageOut, status_code=201)
def post_to_founder_deal_room(
    message_in: MessageIn,
    founder_id: UUID4 = Path(...),
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> MessageOut:
    founder = _founder_or_404(db, founder_id)
    return message_out(_post_message(db, founder.id, user, message_in.content))
