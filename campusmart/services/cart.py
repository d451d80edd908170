from typing import List, Optional
from datetime import datetime
import logging

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from campusmart.core.errors import InvalidQuantity, NotFound, Unauthenticated, translate_store_errors
from campusmart.db.transaction import run_transaction
from campusmart.models.cart import CartItem, CartLine, CartSummary
from campusmart.models.user import User
from campusmart.services.product import get_product, get_products
from campusmart.services.subscription import Subscription

logger = logging.getLogger(__name__)


class CartStore:
    """The signed-in buyer's pending-purchase set.

    Lines are keyed by product id. A stored quantity is always at least 1:
    any update to 0 or below deletes the line instead. Count and total are
    derived from the current lines on every read and never stored.
    """

    def __init__(self, db, client, user: Optional[User]):
        self.db = db
        self.client = client
        self.user = user

    def _require_user(self) -> User:
        if self.user is None:
            raise Unauthenticated("You need to be logged in to use the cart.")
        return self.user

    def _key(self, product_id: str) -> dict:
        return {"user_id": self._require_user().id, "product_id": product_id}

    async def _increment(self, product_id: str, quantity: int) -> dict:
        # Create-or-increment in one document operation; status is only set on creation
        return await self.db.cart.find_one_and_update(
            self._key(product_id),
            {
                "$inc": {"quantity": quantity},
                "$setOnInsert": {"status": "Unpaid", "date_added": datetime.utcnow()},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> CartLine:
        user = self._require_user()
        if quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1")

        async with translate_store_errors("add_to_cart"):
            product = await get_product(self.db, product_id)
            if product is None:
                raise NotFound("Product not found")

            try:
                line = await self._increment(product_id, quantity)
            except DuplicateKeyError:
                # A concurrent add inserted the line first; it matches now, so this increments it
                line = await self._increment(product_id, quantity)

        logger.info(f"User {user.id} added {quantity} x {product_id} to cart")
        return CartLine(**line)

    async def update_quantity(self, product_id: str, quantity: int) -> Optional[CartLine]:
        """Overwrite a line's quantity; a quantity of 0 or less removes the line"""
        self._require_user()
        if quantity <= 0:
            await self.remove_from_cart(product_id)
            return None

        async with translate_store_errors("update_quantity"):
            line = await self.db.cart.find_one_and_update(
                self._key(product_id),
                {"$set": {"quantity": quantity}},
                return_document=ReturnDocument.AFTER,
            )
        if line is None:
            raise NotFound("Item not found in cart")
        return CartLine(**line)

    async def remove_from_cart(self, product_id: str):
        async with translate_store_errors("remove_from_cart"):
            await self.db.cart.delete_one(self._key(product_id))

    async def clear_cart(self) -> int:
        user = self._require_user()

        async def _clear(session):
            result = await self.db.cart.delete_many({"user_id": user.id}, session=session)
            return result.deleted_count

        async with translate_store_errors("clear_cart"):
            return await run_transaction(self.client, _clear)

    async def get_lines(self) -> List[CartLine]:
        user = self._require_user()
        async with translate_store_errors("get_lines"):
            lines = await self.db.cart.find({"user_id": user.id}).sort("date_added", 1).to_list(None)
        return [CartLine(**line) for line in lines]

    async def get_cart(self) -> CartSummary:
        lines = await self.get_lines()
        async with translate_store_errors("get_cart"):
            products = await get_products(self.db, (line.product_id for line in lines))

        items = []
        for line in lines:
            product = products.get(line.product_id)
            # Listings deleted after being added are left out of the view
            if product:
                items.append(CartItem(product=product, quantity=line.quantity, status=line.status))
        return CartSummary.from_items(items)

    def subscribe(self) -> Subscription:
        user = self._require_user()
        return Subscription(self.db.cart, {"user_id": user.id}, self.get_cart)
