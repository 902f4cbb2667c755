from fastapi import APIRouter, HTTPException, Depends, status
from datetime import datetime, timezone
from loguru import logger
from typing import List, Optional

from pydantic import BaseModel

from crealink.models.schemas import Conversation, Message, User
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel
from crealink.routers.auth import get_bearer_token, require_user
from crealink.services.notifications import create_message_notification

router = APIRouter(prefix="/chats", tags=["Messaging"])


class ConversationRequest(BaseModel):
    participant_id: str
    job_id: Optional[str] = None


class MessageContent(BaseModel):
    content: str


def participant_key(*user_ids: str) -> str:
    return ":".join(sorted(user_ids))


def _get_conversation(firestore_ops: FirestoreBaseModel, conversation_id: str, user: User) -> Conversation:
    conversation = firestore_ops.get(collection_name="conversations", document_id=conversation_id, pydantic_model=Conversation)
    if not conversation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    if user.uid not in conversation.participant_ids:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a participant in this conversation")
    return conversation


@router.post("/", response_model=Conversation, status_code=status.HTTP_201_CREATED)
async def start_conversation(request_in: ConversationRequest, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    if request_in.participant_id == current_user.uid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot start a conversation with yourself")

    other = firestore_ops.get(collection_name="users", document_id=request_in.participant_id, pydantic_model=User)
    if not other:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")
    if not other.settings.allow_messages:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Recipient does not accept messages")

    # One conversation per participant pair (and job, when given)
    key = participant_key(current_user.uid, other.uid)
    # job_id == None keeps a general chat apart from the pair's job-scoped ones
    filters = [("participant_key", "==", key), ("job_id", "==", request_in.job_id)]
    existing = firestore_ops.query_many(collection_name="conversations", filters=filters, pydantic_model=Conversation)
    if existing:
        return existing[0]

    conversation = Conversation(
        participant_ids=[current_user.uid, other.uid],
        participant_key=key,
        job_id=request_in.job_id,
        unread={current_user.uid: 0, other.uid: 0},
    )
    saved_id = firestore_ops.save(collection_name="conversations", data_model=conversation.model_dump(), document_id=conversation.id)
    if not saved_id:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not create conversation")
    return conversation


@router.get("/", response_model=List[Conversation])
async def list_conversations(token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    conversations = firestore_ops.query(
        collection_name="conversations",
        field="participant_ids",
        operator="array_contains",
        value=current_user.uid,
        pydantic_model=Conversation,
    )
    fallback = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(conversations, key=lambda c: c.last_message_at or c.created_at or fallback, reverse=True)


@router.post("/{conversation_id}/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_message(conversation_id: str, message_in: MessageContent, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    conversation = _get_conversation(firestore_ops, conversation_id, current_user)

    if conversation.status == "archived":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Conversation is archived")
    if not message_in.content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message content cannot be empty")

    receiver_id = next(uid for uid in conversation.participant_ids if uid != current_user.uid)
    message = Message(
        conversation_id=conversation.id,
        sender_id=current_user.uid,
        receiver_id=receiver_id,
        content=message_in.content,
    )
    saved_id = firestore_ops.save(collection_name="messages", data_model=message.model_dump(), document_id=message.id)
    if not saved_id:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not send message")

    unread = dict(conversation.unread)
    unread[receiver_id] = unread.get(receiver_id, 0) + 1
    firestore_ops.update(
        collection_name="conversations",
        document_id=conversation.id,
        updates={"last_message": message.content, "last_message_at": message.timestamp, "unread": unread},
    )

    receiver = firestore_ops.get(collection_name="users", document_id=receiver_id, pydantic_model=User)
    if receiver and receiver.settings.allow_notifications:
        create_message_notification(
            firestore_ops,
            user_id=receiver_id,
            content=message.content,
            sender_id=current_user.uid,
            sender_name=current_user.display_name or "Anonymous",
            conversation_id=conversation.id,
        )
    else:
        logger.debug(f"Notifications disabled or receiver missing for {receiver_id}")

    return message


@router.get("/{conversation_id}/messages", response_model=List[Message])
async def list_messages(conversation_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    _get_conversation(firestore_ops, conversation_id, current_user)

    return firestore_ops.query_many(
        collection_name="messages",
        filters=[("conversation_id", "==", conversation_id)],
        order_by="timestamp",
        pydantic_model=Message,
    )


@router.patch("/{conversation_id}/read")
async def mark_conversation_read(conversation_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    conversation = _get_conversation(firestore_ops, conversation_id, current_user)

    unread_messages = firestore_ops.query_many(
        collection_name="messages",
        filters=[
            ("conversation_id", "==", conversation_id),
            ("receiver_id", "==", current_user.uid),
            ("is_read", "==", False),
        ],
        pydantic_model=Message,
    )
    for message in unread_messages:
        firestore_ops.update(collection_name="messages", document_id=message.id, updates={"is_read": True})

    unread = dict(conversation.unread)
    unread[current_user.uid] = 0
    firestore_ops.update(collection_name="conversations", document_id=conversation.id, updates={"unread": unread})
    return {"message": "Conversation marked as read", "marked": len(unread_messages)}


@router.patch("/{conversation_id}/archive", response_model=Conversation)
async def archive_conversation(conversation_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    conversation = _get_conversation(firestore_ops, conversation_id, current_user)

    if not firestore_ops.update(collection_name="conversations", document_id=conversation.id, updates={"status": "archived"}):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not archive conversation")
    conversation.status = "archived"
    return conversation
