from fastapi import APIRouter, Depends, Query

from ...api.deps import get_current_user, get_mailbox
from ...models.user import User
from ...schemas.common import ApiResponse, ok
from ...schemas.notification import MailboxRequest, MailboxResponse
from ...services.mailbox import Mailbox

router = APIRouter(prefix="/notifications", tags=["Notifications"])

def _mailbox_data(user: User) -> dict:
    return MailboxResponse(
        notifications=user.notifications or [],
        seen_notifications=user.seen_notifications or []
    ).model_dump(mode="json", exclude_none=True)

@router.get("", response_model=ApiResponse)
async def read_notifications(
    user_id: int = Query(..., alias="userId"),
    mailbox: Mailbox = Depends(get_mailbox),
    _: User = Depends(get_current_user)
):
    """Return both notification lists without changing them."""
    data = mailbox.read(user_id).model_dump(mode="json", exclude_none=True)
    return ok("Notifications fetched", data)

@router.post("/mark-seen", response_model=ApiResponse)
async def mark_all_seen(
    body: MailboxRequest,
    mailbox: Mailbox = Depends(get_mailbox),
    _: User = Depends(get_current_user)
):
    """Move all unseen notifications to the seen list."""
    user = mailbox.mark_all_seen(body.user_id)
    return ok("All notifications marked as read", _mailbox_data(user))

@router.post("/clear", response_model=ApiResponse)
async def clear_all(
    body: MailboxRequest,
    mailbox: Mailbox = Depends(get_mailbox),
    _: User = Depends(get_current_user)
):
    """Delete every notification, seen or not."""
    user = mailbox.clear_all(body.user_id)
    return ok("Notifications deleted", _mailbox_data(user))
