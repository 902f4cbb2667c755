import asyncio
from fastapi import APIRouter, HTTPException, Depends, Response, WebSocket, status
from fastapi.encoders import jsonable_encoder
from loguru import logger
from typing import List

from crealink.models.schemas import Notification, User
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel
from crealink.routers.auth import authenticate, get_bearer_token, require_user
from crealink.services.notifications import NOTIFICATIONS_COLLECTION, list_unread, subscribe_to_notifications

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _get_own_notification(firestore_ops: FirestoreBaseModel, notification_id: str, user: User) -> Notification:
    notification = firestore_ops.get(
        collection_name=NOTIFICATIONS_COLLECTION, document_id=notification_id, pydantic_model=Notification
    )
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if notification.user_id != user.uid:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this notification")
    return notification


@router.get("/", response_model=List[Notification])
async def list_my_notifications(token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    return list_unread(firestore_ops, current_user.uid)


@router.patch("/{notification_id}/read", response_model=Notification)
async def mark_notification_read(notification_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    notification = _get_own_notification(firestore_ops, notification_id, current_user)

    if not firestore_ops.update(collection_name=NOTIFICATIONS_COLLECTION, document_id=notification_id, updates={"read": True}):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update notification")
    notification.read = True
    return notification


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    _get_own_notification(firestore_ops, notification_id, current_user)

    if not firestore_ops.delete(collection_name=NOTIFICATIONS_COLLECTION, document_id=notification_id):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not delete notification")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/ws")
async def notification_feed(websocket: WebSocket, token: str):
    """Push the unread list every time it changes, until the client disconnects."""
    try:
        user_id = authenticate(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    # Snapshot callbacks arrive on the SDK's thread
    def on_change(notifications: List[Notification]):
        loop.call_soon_threadsafe(queue.put_nowait, notifications)

    watch = subscribe_to_notifications(firestore_ops, user_id, on_change)
    receive_task = asyncio.ensure_future(websocket.receive())
    try:
        while True:
            get_task = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({receive_task, get_task}, return_when=asyncio.FIRST_COMPLETED)

            if receive_task in done:
                if receive_task.result()["type"] == "websocket.disconnect":
                    get_task.cancel()
                    break
                # Client chatter is ignored
                receive_task = asyncio.ensure_future(websocket.receive())

            if get_task in done:
                await websocket.send_json(jsonable_encoder(get_task.result()))
            else:
                get_task.cancel()
    finally:
        receive_task.cancel()
        watch.unsubscribe()
        logger.debug(f"Notification feed closed for user {user_id}")
