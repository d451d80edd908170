"""
Tests for the Cart Store

Tests cover:
- Create-or-increment on add, including concurrent first adds
- Quantity updates, including removal at zero or below
- Idempotent removal and atomic clearing
- Derived count and total
- Authentication and missing-product failures
"""

import asyncio

import pytest
from pymongo.errors import DuplicateKeyError

from campusmart.core.errors import InvalidQuantity, NotFound, PermissionDenied, Unauthenticated
from campusmart.db.session import ensure_indexes
from fakes import permission_error


async def stored_quantity(db, buyer, product_id):
    line = await db.cart.find_one({"user_id": buyer.id, "product_id": product_id})
    return None if line is None else line["quantity"]


class TestAddToCart:
    """Tests for adding products to the cart."""

    @pytest.mark.asyncio
    async def test_first_add_creates_unpaid_line(self, db, buyer, product, workflow_for):
        line = await workflow_for(buyer).cart.add_to_cart(product.id)

        assert line.quantity == 1
        assert line.status == "Unpaid"
        assert await stored_quantity(db, buyer, product.id) == 1

    @pytest.mark.asyncio
    async def test_repeat_add_increments(self, db, buyer, product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id)
        line = await cart.add_to_cart(product.id, 3)

        assert line.quantity == 4
        assert await db.cart.count_documents({"user_id": buyer.id}) == 1

    @pytest.mark.asyncio
    async def test_repeat_add_keeps_status(self, db, buyer, product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id)
        await db.cart.update_one({"user_id": buyer.id, "product_id": product.id}, {"$set": {"status": "Paid"}})

        line = await cart.add_to_cart(product.id)
        assert line.status == "Paid"

    @pytest.mark.asyncio
    async def test_concurrent_first_adds_share_one_line(self, db, buyer, product, workflow_for):
        await ensure_indexes(db)
        cart = workflow_for(buyer).cart

        await asyncio.gather(cart.add_to_cart(product.id), cart.add_to_cart(product.id, 2))

        lines = await db.cart.find({"user_id": buyer.id}).to_list(None)
        assert len(lines) == 1
        assert lines[0]["quantity"] == 3

    @pytest.mark.asyncio
    async def test_duplicate_key_falls_back_to_increment(self, db, buyer, product, workflow_for):
        db.cart.seed({"user_id": buyer.id, "product_id": product.id, "quantity": 1, "status": "Unpaid"})
        db.fail_on("cart", DuplicateKeyError("E11000 duplicate key error collection: cart", code=11000))

        line = await workflow_for(buyer).cart.add_to_cart(product.id)

        assert line.quantity == 2
        assert await db.cart.count_documents({"user_id": buyer.id}) == 1

    @pytest.mark.asyncio
    async def test_requires_login(self, db, product, workflow_for):
        with pytest.raises(Unauthenticated):
            await workflow_for(None).cart.add_to_cart(product.id)
        assert await db.cart.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_unknown_product(self, buyer, workflow_for):
        with pytest.raises(NotFound):
            await workflow_for(buyer).cart.add_to_cart("no-such-product")

    @pytest.mark.asyncio
    async def test_rejects_non_positive_quantity(self, buyer, product, workflow_for):
        with pytest.raises(InvalidQuantity):
            await workflow_for(buyer).cart.add_to_cart(product.id, 0)

    @pytest.mark.asyncio
    async def test_store_rejection_is_translated(self, db, buyer, product, workflow_for):
        db.fail_on("cart", permission_error())
        with pytest.raises(PermissionDenied):
            await workflow_for(buyer).cart.add_to_cart(product.id)


class TestUpdateAndRemove:
    """Tests for quantity updates and removal."""

    @pytest.mark.asyncio
    async def test_update_overwrites_quantity(self, db, buyer, product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id, 2)
        line = await cart.update_quantity(product.id, 5)

        assert line.quantity == 5
        assert await stored_quantity(db, buyer, product.id) == 5

    @pytest.mark.asyncio
    async def test_update_to_zero_deletes_line(self, db, buyer, product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id, 2)

        assert await cart.update_quantity(product.id, 0) is None
        assert await db.cart.find_one({"user_id": buyer.id, "product_id": product.id}) is None

    @pytest.mark.asyncio
    async def test_update_to_negative_deletes_line(self, db, buyer, product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id)
        await cart.update_quantity(product.id, -3)

        assert await stored_quantity(db, buyer, product.id) is None

    @pytest.mark.asyncio
    async def test_update_missing_line(self, buyer, product, workflow_for):
        with pytest.raises(NotFound):
            await workflow_for(buyer).cart.update_quantity(product.id, 2)

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, buyer, product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id)
        await cart.remove_from_cart(product.id)
        await cart.remove_from_cart(product.id)

        assert (await cart.get_cart()).items == []

    @pytest.mark.asyncio
    async def test_net_effect_of_sequence(self, db, buyer, product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id, 2)
        await cart.add_to_cart(product.id)
        await cart.update_quantity(product.id, 7)
        await cart.add_to_cart(product.id, 2)
        assert await stored_quantity(db, buyer, product.id) == 9

        await cart.update_quantity(product.id, 0)
        await cart.add_to_cart(product.id)
        assert await stored_quantity(db, buyer, product.id) == 1

    @pytest.mark.asyncio
    async def test_clear_cart_removes_only_own_lines(self, db, buyer, seller, product, other_product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id)
        await cart.add_to_cart(other_product.id, 2)
        await workflow_for(seller).cart.add_to_cart(product.id)

        assert await cart.clear_cart() == 2
        assert await db.cart.count_documents({"user_id": buyer.id}) == 0
        assert await db.cart.count_documents({"user_id": seller.id}) == 1


class TestDerivedValues:
    """Tests for cart count and total."""

    @pytest.mark.asyncio
    async def test_single_item_total(self, buyer, product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id)

        summary = await cart.get_cart()
        assert summary.cart_count == 1
        assert summary.cart_total == pytest.approx(50.00)

    @pytest.mark.asyncio
    async def test_recomputed_after_every_mutation(self, buyer, product, other_product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id, 2)
        await cart.add_to_cart(other_product.id)

        summary = await cart.get_cart()
        assert summary.cart_count == 3
        assert summary.cart_total == pytest.approx(2 * 50.00 + 35.50)

        await cart.update_quantity(product.id, 1)
        summary = await cart.get_cart()
        assert summary.cart_count == 2
        assert summary.cart_total == pytest.approx(85.50)

        await cart.remove_from_cart(other_product.id)
        summary = await cart.get_cart()
        assert summary.cart_count == 1
        assert summary.cart_total == pytest.approx(50.00)

    @pytest.mark.asyncio
    async def test_deleted_listing_left_out(self, db, buyer, product, other_product, workflow_for):
        cart = workflow_for(buyer).cart
        await cart.add_to_cart(product.id)
        await cart.add_to_cart(other_product.id)
        await db.products.delete_one({"id": other_product.id})

        summary = await cart.get_cart()
        assert [item.product.id for item in summary.items] == [product.id]
        assert summary.cart_total == pytest.approx(50.00)

    @pytest.mark.asyncio
    async def test_anonymous_cart_read(self, workflow_for):
        with pytest.raises(Unauthenticated):
            await workflow_for(None).cart.get_cart()
