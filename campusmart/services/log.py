from fastapi import Request
from typing import Optional
import logging

from campusmart.models.log import ActivityLog
from campusmart.models.user import User

logger = logging.getLogger(__name__)

def client_address(request: Request) -> str:
    # First hop of X-Forwarded-For when behind the campus proxy
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

async def log_activity(
    db,
    actor: User,
    action: str,
    details: str,
    target_id: Optional[str] = None,
    target_type: Optional[str] = None,
    request: Optional[Request] = None
) -> Optional[ActivityLog]:
    """Append a purchase-workflow event to the audit trail.

    The workflow step has already committed when this runs, so a failed
    audit write is logged and reported as None instead of raised.
    """
    entry = ActivityLog(
        user_id=actor.id,
        username=actor.display_name,
        action=action,
        details=details,
        target_id=target_id,
        target_type=target_type,
    )
    if request:
        entry.ip_address = client_address(request)
        entry.user_agent = request.headers.get("user-agent", "unknown")

    try:
        await db.activity_logs.insert_one(entry.model_dump())
    except Exception as e:
        logger.error(f"Failed to record {action} for {actor.id}: {str(e)}")
        return None
    return entry
