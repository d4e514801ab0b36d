from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.auth.permissions import require_admin
from noken.db.session import get_db
from noken.messages.schemas import MessageCreate, MessageOut, ReplyMessage
from noken.messages.services import MessageService

router = APIRouter(prefix="/api/messages", tags=["messages"])


def get_message_service(db: AsyncSession = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MessageOut)
async def create_message(
    payload: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return await service.create(payload.sujet, payload.contenu, current_user)


@router.get("", response_model=List[MessageOut])
async def list_messages(
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return await service.find_all(current_user)


@router.get("/unread-count")
async def unread_count(
    admin: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    return {"count": await service.unread_count()}


@router.get("/{message_id}", response_model=MessageOut)
async def get_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return await service.get(message_id, current_user)


@router.put("/{message_id}/mark-read", response_model=MessageOut)
async def mark_read(
    message_id: int,
    admin: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    return await service.mark_read(message_id)


@router.put("/{message_id}/reply", response_model=MessageOut)
async def reply_message(
    message_id: int,
    payload: ReplyMessage,
    admin: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    return await service.reply(message_id, payload.contenu, admin)


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    admin: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    return await service.delete(message_id)
