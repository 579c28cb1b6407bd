"""Chat routers - REST conversations API and live WebSocket delivery"""

import logging
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_user_from_token
from ...database import get_db
from ...models import QuestionCategory, User
from .connection_manager import manager
from .schemas import (
    ChatResponse,
    CreateChatRequest,
    CustomQuestionCreate,
    CustomQuestionResponse,
    EditMessageRequest,
    MessageResponse,
    SendMessageRequest,
    check_message_content,
)
from .service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])
ws_router = APIRouter(tags=["Chat"])


def get_chat_service(db: Session = Depends(get_db)) -> ChatService:
    """Dependency injection for ChatService"""
    return ChatService(db)


async def publish(message, event: str) -> MessageResponse:
    response = MessageResponse.from_model(message)
    await manager.broadcast(message.chat_id, event, response.model_dump(mode="json"))
    return response


# ============================================================================
# CONVERSATIONS
# ============================================================================


@router.get("/conversations", response_model=list[ChatResponse])
async def get_conversations(
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return [ChatResponse.from_model(c) for c in service.get_user_chats(current_user)]


@router.post("/create", response_model=ChatResponse)
async def create_chat(
    data: CreateChatRequest,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    chat = service.open_chat(data.customerId, data.employeeId, current_user)
    return ChatResponse.from_model(service.get_chat_for_participant(chat.id, current_user))


@router.get("/messages/{chat_id}", response_model=list[MessageResponse])
async def get_messages(
    chat_id: int,
    page: int = Query(0),
    size: int = Query(50),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return [
        MessageResponse.from_model(m)
        for m in service.get_chat_messages(chat_id, current_user, page, size)
    ]


@router.post("/send", response_model=MessageResponse)
async def send_message(
    data: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    message = service.send_message(
        data.chatId, data.content, current_user, data.type, data.customQuestionId
    )
    return await publish(message, "message.created")


@router.put("/edit/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: int,
    data: EditMessageRequest,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    message = service.edit_message(message_id, data.content, current_user)
    return await publish(message, "message.edited")


@router.delete("/delete/{message_id}", response_model=MessageResponse)
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    message = service.delete_message(message_id, current_user)
    return await publish(message, "message.deleted")


# ============================================================================
# CUSTOM QUESTIONS
# ============================================================================


@router.get("/custom-questions", response_model=list[CustomQuestionResponse])
async def get_custom_questions(
    category: Optional[QuestionCategory] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return [CustomQuestionResponse.from_model(q) for q in service.get_custom_questions(category)]


@router.post("/custom-questions", response_model=CustomQuestionResponse, status_code=201)
async def create_custom_question(
    data: CustomQuestionCreate,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    question = service.create_custom_question(data.question, data.category, current_user)
    return CustomQuestionResponse.from_model(question)


# ============================================================================
# WEBSOCKET
# ============================================================================


@ws_router.websocket("/ws/chat/{chat_id}")
async def chat_websocket(
    websocket: WebSocket,
    chat_id: int,
    token: str = Query(...),
    db: Session = Depends(get_db),
):
    """
    Live chat channel.

    Clients authenticate with ``?token=<jwt>``, receive ``{"event", "data"}``
    frames for every message change in the chat, and may send
    ``{"content": "..."}`` frames to post a message.
    """
    service = ChatService(db)
    try:
        user = get_user_from_token(token, db)
        service.get_chat_for_participant(chat_id, user)
    except HTTPException as e:
        logger.warning(f"🚫 WebSocket rejected for chat {chat_id}: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(chat_id, websocket)
    try:
        while True:
            try:
                frame = await websocket.receive_json()
                raw = frame.get("content") if isinstance(frame, dict) else None
                content = check_message_content(raw)
                message = service.send_message(chat_id, content, user)
            except (ValueError, HTTPException) as e:
                detail = e.detail if isinstance(e, HTTPException) else str(e)
                await websocket.send_json({"event": "error", "data": {"detail": detail}})
                continue
            await publish(message, "message.created")
    except WebSocketDisconnect:
        logger.info(f"🔌 WebSocket left chat {chat_id}")
    finally:
        manager.disconnect(chat_id, websocket)
