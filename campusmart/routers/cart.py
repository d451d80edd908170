from fastapi import APIRouter, Depends

from campusmart.models.cart import CartAdd, CartQuantityUpdate, CartSummary
from campusmart.services.workflow import WorkflowSession, get_workflow

router = APIRouter()

@router.get("/cart", response_model=CartSummary)
async def get_cart(workflow: WorkflowSession = Depends(get_workflow)):
    return await workflow.cart.get_cart()

@router.post("/cart", response_model=CartSummary)
async def add_to_cart(body: CartAdd, workflow: WorkflowSession = Depends(get_workflow)):
    """Add a product, or bump its quantity if it is already in the cart"""
    await workflow.cart.add_to_cart(body.product_id, body.quantity)
    return await workflow.cart.get_cart()

@router.put("/cart/{product_id}", response_model=CartSummary)
async def update_cart_quantity(
    product_id: str,
    body: CartQuantityUpdate,
    workflow: WorkflowSession = Depends(get_workflow)
):
    await workflow.cart.update_quantity(product_id, body.quantity)
    return await workflow.cart.get_cart()

@router.delete("/cart/{product_id}", response_model=CartSummary)
async def remove_from_cart(product_id: str, workflow: WorkflowSession = Depends(get_workflow)):
    await workflow.cart.remove_from_cart(product_id)
    return await workflow.cart.get_cart()

@router.delete("/cart")
async def clear_cart(workflow: WorkflowSession = Depends(get_workflow)):
    removed = await workflow.cart.clear_cart()
    return {"message": f"Removed {removed} items from cart"}
