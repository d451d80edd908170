from typing import Dict, Iterable, Optional

from campusmart.models.product import Product

async def get_product(db, product_id: str, session=None) -> Optional[Product]:
    """Fetch a listing, or None when it has been deleted"""
    product = await db.products.find_one({"id": product_id}, session=session)
    return Product(**product) if product else None

async def get_products(db, product_ids: Iterable[str], session=None) -> Dict[str, Product]:
    ids = list(product_ids)
    if not ids:
        return {}
    products = await db.products.find({"id": {"$in": ids}}, session=session).to_list(len(ids))
    return {p["id"]: Product(**p) for p in products}
