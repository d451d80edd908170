from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from typing import Any, Callable
import asyncio

from campusmart.db.session import get_client, get_db
from campusmart.services.auth import get_user_from_token
from campusmart.services.subscription import Subscription
from campusmart.services.workflow import WorkflowSession

router = APIRouter()

# Policy violation: missing or invalid token
WS_UNAUTHENTICATED = 1008

def _dump_list(snapshot):
    return [item.model_dump(mode="json") for item in snapshot]

async def _wait_for_disconnect(websocket: WebSocket):
    # Feeds are one-way; inbound frames are ignored until the client hangs up
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass

async def _stream(websocket: WebSocket, subscription: Subscription, encode: Callable[[Any], Any]):
    """Push snapshots until the client goes away, then cancel the subscription"""
    async def push(snapshot):
        await websocket.send_json(encode(snapshot))

    feed = subscription.start(push)
    listener = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        await asyncio.wait({feed, listener}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        # Stops delivery and closes the change stream; a failed feed is logged here
        await subscription.cancel()
        listener.cancel()
        await asyncio.gather(listener, return_exceptions=True)

async def _open(websocket: WebSocket, token: str, db, client):
    user = await get_user_from_token(db, token)
    if user is None:
        await websocket.close(code=WS_UNAUTHENTICATED)
        return None
    await websocket.accept()
    return WorkflowSession(db, client, user)

@router.websocket("/ws/cart")
async def cart_feed(websocket: WebSocket, token: str = Query(""), db=Depends(get_db), client=Depends(get_client)):
    workflow = await _open(websocket, token, db, client)
    if workflow:
        await _stream(websocket, workflow.cart.subscribe(), lambda summary: summary.model_dump(mode="json"))

@router.websocket("/ws/notifications")
async def notifications_feed(websocket: WebSocket, token: str = Query(""), db=Depends(get_db), client=Depends(get_client)):
    workflow = await _open(websocket, token, db, client)
    if workflow:
        await _stream(websocket, workflow.inbox.subscribe(workflow.user.id), _dump_list)

@router.websocket("/ws/purchases")
async def purchases_feed(websocket: WebSocket, token: str = Query(""), db=Depends(get_db), client=Depends(get_client)):
    workflow = await _open(websocket, token, db, client)
    if workflow:
        await _stream(websocket, workflow.purchases.subscribe_purchases(workflow.user.id), _dump_list)

@router.websocket("/ws/sales")
async def sales_feed(websocket: WebSocket, token: str = Query(""), db=Depends(get_db), client=Depends(get_client)):
    workflow = await _open(websocket, token, db, client)
    if workflow:
        await _stream(websocket, workflow.purchases.subscribe_sales(workflow.user.id), _dump_list)
