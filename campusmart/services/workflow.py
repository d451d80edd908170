from typing import Optional

from fastapi import Depends

from campusmart.core.errors import Unauthenticated
from campusmart.db.session import get_client, get_db
from campusmart.models.user import User
from campusmart.services.auth import get_current_user_optional
from campusmart.services.cart import CartStore
from campusmart.services.notification import NotificationInbox
from campusmart.services.purchase import PurchaseInitiator
from campusmart.services.report import ReportService
from campusmart.services.transaction import TransactionConfirmer


class WorkflowSession:
    """Everything one signed-in (or anonymous) session can do.

    Built per request from an explicit store and user instead of ambient
    globals, so every operation sees the same actor.
    """

    def __init__(self, db, client, user: Optional[User]):
        self.user = user
        self.cart = CartStore(db, client, user)
        self.inbox = NotificationInbox(db)
        self.purchases = PurchaseInitiator(db, client)
        self.confirmer = TransactionConfirmer(db, client)
        self.reports = ReportService(db, self.inbox)

    def require_user(self) -> User:
        if self.user is None:
            raise Unauthenticated("Please log in")
        return self.user

    async def initiate_purchase(self, product_id: str, payment_method: str):
        return await self.purchases.initiate_purchase(self.user, product_id, payment_method)

    async def confirm_transaction(self, notification_id: str):
        return await self.confirmer.confirm_notification(self.user, notification_id)


async def get_workflow(
    current_user: Optional[User] = Depends(get_current_user_optional),
    db=Depends(get_db),
    client=Depends(get_client),
) -> WorkflowSession:
    return WorkflowSession(db, client, current_user)
