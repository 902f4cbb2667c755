from typing import Callable, List

from loguru import logger
from pydantic import ValidationError

from crealink.db.firebase_ops import FirestoreBaseModel
from crealink.models.schemas import Notification

NOTIFICATIONS_COLLECTION = "notifications"


def create_message_notification(
    firestore_ops: FirestoreBaseModel,
    user_id: str,
    content: str,
    sender_id: str,
    sender_name: str,
    conversation_id: str,
) -> str | None:
    """Store an unread `message` notification for the receiver of a chat message."""
    notification = Notification(
        user_id=user_id,
        type="message",
        title=f"New message from {sender_name}",
        content=content,
        sender_id=sender_id,
        sender_name=sender_name,
        link=f"/messages?id={conversation_id}",
        conversation_id=conversation_id,
    )
    saved_id = firestore_ops.save(
        collection_name=NOTIFICATIONS_COLLECTION,
        data_model=notification.model_dump(),
        document_id=notification.id,
    )
    if saved_id:
        logger.debug(f"Notification {saved_id} created for user {user_id}")
    else:
        logger.error(f"Could not create message notification for user {user_id}")
    return saved_id


def unread_filters(user_id: str):
    return [("user_id", "==", user_id), ("read", "==", False)]


def list_unread(firestore_ops: FirestoreBaseModel, user_id: str) -> List[Notification]:
    return firestore_ops.query_many(
        NOTIFICATIONS_COLLECTION,
        unread_filters(user_id),
        order_by="created_at",
        descending=True,
        pydantic_model=Notification,
    )


def subscribe_to_notifications(
    firestore_ops: FirestoreBaseModel,
    user_id: str,
    callback: Callable[[List[Notification]], None],
):
    """
    Live feed of a user's unread notifications, newest first.

    `callback` runs on the SDK's listener thread with the full unread list each
    time it changes. Returns a handle; call `unsubscribe()` to stop.
    """
    def on_documents(documents):
        notifications = []
        for doc in documents:
            try:
                notifications.append(Notification(**doc))
            except ValidationError as e:
                logger.error(f"Skipping malformed notification {doc.get('id')} for user {user_id}: {e}")
        callback(notifications)

    return firestore_ops.listen(
        NOTIFICATIONS_COLLECTION,
        unread_filters(user_id),
        on_documents,
        order_by="created_at",
        descending=True,
    )
