from datetime import datetime
from typing import List, Optional

from pydantic import Field

from noken.schemas import CamelModel


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=2000)
    conversation_id: Optional[str] = None


class ChatResponse(CamelModel):
    response: str
    conversation_id: str


class ChatMessageOut(CamelModel):
    id: int
    role: str
    content: str
    timestamp: datetime


class ChatConversationOut(CamelModel):
    id: str
    title: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ChatConversationDetail(ChatConversationOut):
    messages: List[ChatMessageOut] = []
