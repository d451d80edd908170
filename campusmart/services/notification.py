from typing import List, Optional
from datetime import datetime
import logging

from campusmart.core.config import settings
from campusmart.core.errors import NotFound, translate_store_errors
from campusmart.models.notification import Notification, NotificationMetadata
from campusmart.services.subscription import Subscription

logger = logging.getLogger(__name__)

async def create_notification_helper(
    db,
    user_id: str,
    title: str,
    message: str,
    action_url: Optional[str] = None,
    action_type: Optional[str] = None,
    metadata: Optional[NotificationMetadata] = None,
    session=None
) -> Notification:
    """Helper function to create notifications for various events"""
    notification_obj = Notification(
        user_id=user_id,
        title=title,
        message=message,
        action_url=action_url,
        action_type=action_type,
        metadata=metadata,
    )
    # Unset optional fields are left out so an absent action_type reads as absent
    await db.notifications.insert_one(notification_obj.model_dump(exclude_none=True), session=session)
    return notification_obj


class NotificationInbox:
    """Per-user event log, newest first"""

    def __init__(self, db):
        self.db = db

    async def notify(self, user_id: str, title: str, message: str, action_url: Optional[str] = None) -> Notification:
        async with translate_store_errors("notify"):
            return await create_notification_helper(
                self.db, user_id=user_id, title=title, message=message, action_url=action_url
            )

    async def list_notifications(
        self,
        user_id: str,
        limit: Optional[int] = None,
        skip: int = 0,
        unread_only: bool = False
    ) -> List[Notification]:
        """Notifications ordered by date, newest first. Read state never changes the order."""
        limit = limit or settings.NOTIFICATION_PAGE_SIZE
        query = {"user_id": user_id}
        if unread_only:
            query["read"] = False

        async with translate_store_errors("list_notifications"):
            notifications = await self.db.notifications.find(query).sort("date", -1).skip(skip).limit(limit).to_list(limit)
        return [Notification(**notif) for notif in notifications]

    async def get_notification(self, user_id: str, notification_id: str) -> Notification:
        async with translate_store_errors("get_notification"):
            notification = await self.db.notifications.find_one({"id": notification_id, "user_id": user_id})
        if not notification:
            raise NotFound("Notification not found")
        return Notification(**notification)

    async def unread_count(self, user_id: str) -> int:
        async with translate_store_errors("unread_count"):
            return await self.db.notifications.count_documents({"user_id": user_id, "read": False})

    async def mark_as_read(self, user_id: str, notification_id: str):
        notification = await self.get_notification(user_id, notification_id)
        if not notification.read:
            async with translate_store_errors("mark_as_read"):
                await self.db.notifications.update_one(
                    {"id": notification_id, "user_id": user_id, "read": False},
                    {"$set": {"read": True, "read_at": datetime.utcnow()}}
                )

    async def mark_all_as_read(self, user_id: str) -> int:
        async with translate_store_errors("mark_all_as_read"):
            result = await self.db.notifications.update_many(
                {"user_id": user_id, "read": False},
                {"$set": {"read": True, "read_at": datetime.utcnow()}}
            )
        return result.modified_count

    async def delete_notification(self, user_id: str, notification_id: str):
        """Remove a notification from the inbox.

        Nothing cascades to the related purchase. Deleting a pending
        confirm_transaction notification leaves that purchase Pending with no
        remaining way to confirm it, so the deletion is logged as a warning.
        """
        async with translate_store_errors("delete_notification"):
            notification = await self.db.notifications.find_one({"id": notification_id, "user_id": user_id})
            if notification is None:
                return
            stored = Notification(**notification)
            if stored.is_pending_confirmation and stored.metadata:
                logger.warning(
                    f"User {user_id} deleted unconfirmed notification {notification_id}; "
                    f"purchase {stored.metadata.purchase_id} stays Pending"
                )
            await self.db.notifications.delete_one({"id": notification_id, "user_id": user_id})

    def subscribe(self, user_id: str) -> Subscription:
        return Subscription(self.db.notifications, {"user_id": user_id}, lambda: self.list_notifications(user_id))
