from typing import Optional
from datetime import datetime
import logging

from campusmart.core.errors import InvalidNotification, NotFound, PermissionDenied, Unauthenticated, translate_store_errors
from campusmart.db.transaction import run_transaction
from campusmart.models.notification import CONFIRM_TRANSACTION, ConfirmationResult, Notification
from campusmart.models.purchase import PENDING, SUCCESSFUL
from campusmart.models.user import User
from campusmart.services.notification import NotificationInbox

logger = logging.getLogger(__name__)


class TransactionConfirmer:
    """Seller-side acceptance of a Pending purchase.

    The purchase flip and the retirement of the seller's action live in
    different owners' records but are written in one transaction. The stored
    action_type is the idempotence marker: once cleared, confirming again
    changes nothing.
    """

    def __init__(self, db, client):
        self.db = db
        self.client = client

    async def confirm_transaction(self, seller: Optional[User], notification: Notification) -> ConfirmationResult:
        if seller is None:
            raise Unauthenticated("You must be logged in to confirm a transaction.")

        metadata = notification.metadata
        if notification.action_type != CONFIRM_TRANSACTION or not metadata or not metadata.buyer_id or not metadata.purchase_id:
            raise InvalidNotification("This notification has no transaction to confirm")
        if notification.user_id != seller.id:
            raise PermissionDenied("This notification belongs to another user")

        buyer_id = metadata.buyer_id
        purchase_id = metadata.purchase_id

        async def _confirm(session):
            stored = await self.db.notifications.find_one(
                {"id": notification.id, "user_id": seller.id}, session=session
            )
            if not stored:
                raise NotFound("Notification not found")
            if stored.get("action_type") != CONFIRM_TRANSACTION:
                # Already confirmed by an earlier call
                return ConfirmationResult(purchase_id=purchase_id, confirmed=False)

            result = await self.db.purchases.update_one(
                {"id": purchase_id, "buyer_id": buyer_id, "seller_id": seller.id, "status": PENDING},
                {"$set": {"status": SUCCESSFUL}},
                session=session,
            )
            if result.matched_count != 1:
                raise NotFound("Purchase not found or no longer pending")

            await self.db.notifications.update_one(
                {"id": notification.id, "user_id": seller.id, "action_type": CONFIRM_TRANSACTION},
                {"$set": {"read": True, "read_at": datetime.utcnow()}, "$unset": {"action_type": ""}},
                session=session,
            )
            return ConfirmationResult(purchase_id=purchase_id, confirmed=True)

        async with translate_store_errors("confirm_transaction"):
            outcome = await run_transaction(self.client, _confirm)

        if outcome.confirmed:
            logger.info(f"Seller {seller.id} confirmed purchase {purchase_id}")
        else:
            logger.info(f"Purchase {purchase_id} was already confirmed; nothing to do")
        return outcome

    async def confirm_notification(self, seller: Optional[User], notification_id: str) -> ConfirmationResult:
        """Confirm by notification id, as the inbox's action button does"""
        if seller is None:
            raise Unauthenticated("You must be logged in to confirm a transaction.")
        notification = await NotificationInbox(self.db).get_notification(seller.id, notification_id)
        if notification.action_type is None and notification.metadata and notification.metadata.purchase_id:
            # Stored action already retired: a repeated click
            return ConfirmationResult(purchase_id=notification.metadata.purchase_id, confirmed=False)
        return await self.confirm_transaction(seller, notification)
