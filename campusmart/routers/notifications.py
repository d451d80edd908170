from fastapi import APIRouter, Depends, Request
from typing import List, Optional

from campusmart.db.session import get_db
from campusmart.models.notification import ConfirmationResult, Notification
from campusmart.services.log import log_activity
from campusmart.services.workflow import WorkflowSession, get_workflow

router = APIRouter()

@router.get("/notifications", response_model=List[Notification])
async def get_user_notifications(
    limit: Optional[int] = None,
    skip: int = 0,
    unread_only: bool = False,
    workflow: WorkflowSession = Depends(get_workflow)
):
    """Get notifications for the current user, newest first"""
    user = workflow.require_user()
    return await workflow.inbox.list_notifications(user.id, limit=limit, skip=skip, unread_only=unread_only)

@router.get("/notifications/unread-count")
async def get_unread_notifications_count(workflow: WorkflowSession = Depends(get_workflow)):
    user = workflow.require_user()
    return {"unread_count": await workflow.inbox.unread_count(user.id)}

@router.put("/notifications/mark-all-read")
async def mark_all_notifications_as_read(workflow: WorkflowSession = Depends(get_workflow)):
    user = workflow.require_user()
    modified = await workflow.inbox.mark_all_as_read(user.id)
    return {"message": f"Marked {modified} notifications as read"}

@router.put("/notifications/{notification_id}/mark-read")
async def mark_notification_as_read(notification_id: str, workflow: WorkflowSession = Depends(get_workflow)):
    user = workflow.require_user()
    await workflow.inbox.mark_as_read(user.id, notification_id)
    return {"message": "Notification marked as read"}

@router.delete("/notifications/{notification_id}")
async def delete_notification(notification_id: str, workflow: WorkflowSession = Depends(get_workflow)):
    user = workflow.require_user()
    await workflow.inbox.delete_notification(user.id, notification_id)
    return {"message": "Notification deleted"}

@router.post("/notifications/{notification_id}/confirm", response_model=ConfirmationResult)
async def confirm_transaction(
    notification_id: str,
    request: Request,
    workflow: WorkflowSession = Depends(get_workflow),
    db=Depends(get_db)
):
    """Seller confirms receipt; the buyer's purchase becomes Successful"""
    result = await workflow.confirm_transaction(notification_id)

    if result.confirmed:
        await log_activity(
            db,
            workflow.user,
            action="transaction_confirmed",
            details=f"Confirmed purchase {result.purchase_id}",
            target_id=result.purchase_id,
            target_type="purchase",
            request=request
        )
    return result
