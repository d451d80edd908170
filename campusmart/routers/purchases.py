from fastapi import APIRouter, Depends, Request
from typing import List

from campusmart.db.session import get_db
from campusmart.models.purchase import Purchase, PurchaseCreate
from campusmart.services.log import log_activity
from campusmart.services.workflow import WorkflowSession, get_workflow

router = APIRouter()

@router.post("/purchases", response_model=Purchase)
async def initiate_purchase(
    body: PurchaseCreate,
    request: Request,
    workflow: WorkflowSession = Depends(get_workflow),
    db=Depends(get_db)
):
    """Buyer attests payment; the seller gets a confirm-transaction action"""
    purchase, _ = await workflow.initiate_purchase(body.product_id, body.payment_method)

    await log_activity(
        db,
        workflow.user,
        action="purchase_initiated",
        details=f"Initiated purchase of '{purchase.product_name}' via {purchase.payment_method}",
        target_id=purchase.id,
        target_type="purchase",
        request=request
    )
    return purchase

@router.get("/purchases", response_model=List[Purchase])
async def get_my_purchases(workflow: WorkflowSession = Depends(get_workflow)):
    user = workflow.require_user()
    return await workflow.purchases.list_purchases(user.id)

@router.get("/purchases/{purchase_id}", response_model=Purchase)
async def get_purchase(purchase_id: str, workflow: WorkflowSession = Depends(get_workflow)):
    user = workflow.require_user()
    return await workflow.purchases.get_purchase(user.id, purchase_id)

@router.get("/sales", response_model=List[Purchase])
async def get_my_sales(workflow: WorkflowSession = Depends(get_workflow)):
    """Purchases of the current user's listings that the user has confirmed"""
    user = workflow.require_user()
    return await workflow.purchases.list_sales(user.id)
