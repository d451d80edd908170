from typing import List, Optional, Tuple
import logging

from campusmart.core.errors import (
    InvalidPaymentMethod,
    NotFound,
    PermissionDenied,
    TransactionConflict,
    Unauthenticated,
    translate_store_errors,
)
from campusmart.db.transaction import run_transaction
from campusmart.models.notification import CONFIRM_TRANSACTION, Notification, NotificationMetadata
from campusmart.models.purchase import SUCCESSFUL, PaymentMethod, Purchase
from campusmart.models.user import User
from campusmart.services.notification import create_notification_helper
from campusmart.services.product import get_product
from campusmart.services.subscription import Subscription

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("ewallet", "banking", "cod")


def seller_notification_text(product_name: str, payment_method: str) -> Tuple[str, str]:
    if payment_method == "cod":
        title = "Cash on Delivery Request"
    else:
        title = "Payment Received - Action Required"
    message = f'A buyer has initiated a purchase for your item: "{product_name}". Please confirm the transaction to proceed.'
    return title, message


class PurchaseInitiator:
    """Turns a cart line into a Pending purchase and a seller action.

    Payment is self-attested by the buyer; nothing here checks that money
    moved. The seller's confirmation is the only settlement step.
    """

    def __init__(self, db, client):
        self.db = db
        self.client = client

    async def initiate_purchase(
        self,
        buyer: Optional[User],
        product_id: str,
        payment_method: PaymentMethod
    ) -> Tuple[Purchase, Notification]:
        """Atomically create the purchase, drop the cart line and notify the seller.

        Either all three writes commit or none do; on failure the cart line is
        left as it was. Calling this again after a success creates nothing,
        because the cart line it consumes is gone. Callers must not retry a
        failure automatically without asking the user.
        """
        if buyer is None:
            raise Unauthenticated("You must be logged in to make a purchase.")
        if payment_method not in PAYMENT_METHODS:
            raise InvalidPaymentMethod(f"Unknown payment method: {payment_method}")

        async def _initiate(session):
            line_key = {"user_id": buyer.id, "product_id": product_id}
            line = await self.db.cart.find_one(line_key, session=session)
            if not line:
                raise NotFound("Item not found in cart")

            product = await get_product(self.db, product_id, session=session)
            if product is None:
                raise NotFound("Product not found")
            if product.seller.id == buyer.id:
                raise PermissionDenied("You cannot purchase your own listing")

            purchase = Purchase(
                buyer_id=buyer.id,
                product_id=product.id,
                product_name=product.name,
                product_image=product.cover_image,
                price=product.price,
                seller_id=product.seller.id,
                seller_name=product.seller.name,
                buyer_name=buyer.display_name,
                payment_method=payment_method,
            )
            await self.db.purchases.insert_one(purchase.model_dump(), session=session)

            result = await self.db.cart.delete_one(line_key, session=session)
            if result.deleted_count != 1:
                raise TransactionConflict("The cart changed during checkout. Please try again.")

            title, message = seller_notification_text(product.name, payment_method)
            notification = await create_notification_helper(
                self.db,
                user_id=product.seller.id,
                title=title,
                message=message,
                action_url="/inbox",
                action_type=CONFIRM_TRANSACTION,
                metadata=NotificationMetadata(
                    buyer_id=buyer.id,
                    product_id=product.id,
                    purchase_id=purchase.id,
                ),
                session=session,
            )
            return purchase, notification

        async with translate_store_errors("initiate_purchase"):
            purchase, notification = await run_transaction(self.client, _initiate)

        logger.info(
            f"Purchase {purchase.id} initiated by {buyer.id} for product {product_id} via {payment_method}"
        )
        return purchase, notification

    async def list_purchases(self, buyer_id: str) -> List[Purchase]:
        """Buyer's purchase history, newest first"""
        async with translate_store_errors("list_purchases"):
            purchases = await self.db.purchases.find({"buyer_id": buyer_id}).sort("purchase_date", -1).to_list(None)
        return [Purchase(**p) for p in purchases]

    async def list_sales(self, seller_id: str) -> List[Purchase]:
        """Confirmed sales of a seller, newest first"""
        async with translate_store_errors("list_sales"):
            sales = await self.db.purchases.find(
                {"seller_id": seller_id, "status": SUCCESSFUL}
            ).sort("purchase_date", -1).to_list(None)
        return [Purchase(**p) for p in sales]

    async def get_purchase(self, buyer_id: str, purchase_id: str) -> Purchase:
        async with translate_store_errors("get_purchase"):
            purchase = await self.db.purchases.find_one({"id": purchase_id, "buyer_id": buyer_id})
        if not purchase:
            raise NotFound("Purchase not found")
        return Purchase(**purchase)

    def subscribe_purchases(self, buyer_id: str) -> Subscription:
        return Subscription(self.db.purchases, {"buyer_id": buyer_id}, lambda: self.list_purchases(buyer_id))

    def subscribe_sales(self, seller_id: str) -> Subscription:
        return Subscription(self.db.purchases, {"seller_id": seller_id}, lambda: self.list_sales(seller_id))
