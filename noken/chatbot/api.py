from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.chatbot.schemas import ChatConversationDetail, ChatConversationOut, ChatRequest, ChatResponse
from noken.chatbot.services import ChatbotService
from noken.db.session import get_db
from noken.utils.llm import get_llm_client, require_client

router = APIRouter(prefix="/api/chatbot", tags=["chatbot"])


def get_chatbot_service(
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
) -> ChatbotService:
    return ChatbotService(db, llm_client)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    current_user: User = Depends(get_current_user),
    service: ChatbotService = Depends(get_chatbot_service),
):
    require_client(service.llm_client)
    return await service.chat(payload.message, current_user.id, payload.conversation_id)


@router.get("/conversations", response_model=List[ChatConversationOut])
async def list_conversations(
    current_user: User = Depends(get_current_user),
    service: ChatbotService = Depends(get_chatbot_service),
):
    return await service.get_conversations(current_user.id)


@router.get("/conversations/{conversation_id}", response_model=ChatConversationDetail)
async def get_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    service: ChatbotService = Depends(get_chatbot_service),
):
    return await service.get_conversation(conversation_id, current_user.id)


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    service: ChatbotService = Depends(get_chatbot_service),
):
    return await service.delete_conversation(conversation_id, current_user.id)


@router.get("/suggestions", response_model=List[str])
async def suggestions():
    return ChatbotService.get_suggestions()
