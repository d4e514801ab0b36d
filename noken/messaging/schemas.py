from datetime import datetime
from typing import Optional

from pydantic import Field

from noken.auth.models import Role
from noken.auth.schemas import AuthorOut
from noken.schemas import CamelModel


class ContactOut(AuthorOut):
    role: Role


class PrivateMessageCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)


class PrivateMessageOut(CamelModel):
    id: int
    content: str
    conversation_id: int
    sender_id: int
    is_read: bool
    created_at: datetime
    sender: Optional[AuthorOut] = None


class ConversationOut(CamelModel):
    id: int
    other_user: ContactOut
    last_message: Optional[PrivateMessageOut] = None
    unread_count: int = 0
    updated_at: datetime


class StartedConversation(CamelModel):
    id: int
    other_user: ContactOut
    created_at: datetime


class UnreadMessages(CamelModel):
    unread_count: int
