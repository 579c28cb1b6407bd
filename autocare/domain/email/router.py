"""Email router - Staff can send a free-form message to any address"""

import logging

from fastapi import APIRouter, Depends, status

from ...auth import get_current_user
from ...models import User
from ...services.notification_service import NotificationQueue, get_notification_queue
from ...shared.errors import PermissionDeniedError
from ..appointments import policies
from .schemas import SendEmailRequest, SendEmailResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["Email"])


@router.post("/send", response_model=SendEmailResponse, status_code=status.HTTP_202_ACCEPTED)
async def send_custom_email(
    data: SendEmailRequest,
    current_user: User = Depends(get_current_user),
    notifications: NotificationQueue = Depends(get_notification_queue),
):
    if not policies.is_staff(current_user):
        raise PermissionDeniedError("Staff access required")

    notifications.enqueue("send_custom_email_task", data.email, data.message)
    logger.info(f"📧 User {current_user.id} queued a custom email to {data.email}")
    return SendEmailResponse(status="queued", email=data.email)
