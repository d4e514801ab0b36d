import json
import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from noken.chatbot.models import ChatConversation, ChatMessage
from noken.chatbot.tools import TOOL_DEFINITIONS, ChatbotTools
from noken.config import settings
from noken.exceptions import NotFoundError
from noken.utils.dates import utcnow

logger = logging.getLogger(__name__)

HISTORY_SIZE = 20
MAX_TOOL_ROUNDS = 5
TITLE_LENGTH = 50
FALLBACK_RESPONSE = "Désolé, je n'ai pas pu générer une réponse."

SUGGESTIONS = [
    "Quelles sont les offres d'emploi disponibles ?",
    "Montre-moi les formations récentes",
    "Quelles bourses sont disponibles ?",
    "Quels sont les secteurs les plus actifs ?",
    "Comment améliorer mon CV ?",
    "Quelles compétences sont les plus demandées ?",
]

SYSTEM_PROMPT = """Tu es l'assistant IA de Noken Declic, une plateforme sénégalaise d'aide à l'emploi, aux formations et aux bourses, particulièrement axée sur la région de la Casamance (Ziguinchor, Kolda, Sédhiou, Cap Skirring, Oussouye).

## Ton rôle
Tu es un conseiller carrière personnalisé. Tu dois:
- Aider les utilisateurs à trouver des offres d'emploi, formations et bourses adaptées à leur profil
- Analyser leur CV et donner des conseils d'amélioration
- Recommander des offres basées sur leurs compétences et expériences
- Répondre aux questions sur le marché de l'emploi au Sénégal

## Outils disponibles
Tu disposes de nombreux outils pour accéder aux informations de l'utilisateur:
- **Profil**: Consulter les informations personnelles de l'utilisateur
- **CV**: Accéder au CV complet, expériences, formations, compétences
- **Recommandations**: Trouver des offres correspondant au profil
- **Recherche**: Chercher des offres par localisation, type, secteur
- **Analyse**: Analyser le CV et donner des conseils

## Instructions importantes
- **UTILISE TOUJOURS les outils** pour accéder aux données de l'utilisateur avant de répondre à des questions personnalisées
- Quand l'utilisateur demande des recommandations, utilise d'abord get_recommandations_personnalisees ou get_offres_matching_competences
- Quand il demande d'analyser son CV, utilise analyser_cv
- Quand il pose des questions sur son profil, utilise get_user_profile ou get_user_cv
- Réponds toujours en français
- Sois concis mais informatif
- Utilise le format Markdown pour structurer tes réponses
- Personnalise tes réponses en fonction des données récupérées
- Si l'utilisateur n'a pas de CV, encourage-le à en créer un

## Exemples de questions auxquelles tu peux répondre
- "Quelles offres correspondent à mon profil ?"
- "Analyse mon CV et dis-moi comment l'améliorer"
- "Quelles sont mes compétences ?"
- "Montre-moi les offres à Ziguinchor"
- "Quelles formations sont disponibles ?"
- "Y a-t-il des bourses pour étudier en France ?\""""


def _parse_arguments(raw: Optional[str]) -> dict:
    if not raw:
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"⚠️ Arguments d'outil illisibles: {raw!r}")
        return {}
    return args if isinstance(args, dict) else {}


def _tool_call_dict(tool_call) -> dict:
    return {
        "id": tool_call.id,
        "type": "function",
        "function": {"name": tool_call.function.name, "arguments": tool_call.function.arguments or "{}"},
    }


class ChatbotService:
    def __init__(self, db: AsyncSession, llm_client=None):
        self.db = db
        self.llm_client = llm_client
        self.tools = ChatbotTools(db)

    async def _find_conversation(self, conversation_id: str, user_id: int) -> Optional[ChatConversation]:
        result = await self.db.execute(
            select(ChatConversation).where(
                ChatConversation.id == conversation_id,
                ChatConversation.user_id == user_id,
            )
        )
        return result.scalars().first()

    async def _history(self, conversation_id: str) -> List[dict]:
        result = await self.db.execute(
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())
            .limit(HISTORY_SIZE)
        )
        messages = list(result.scalars().all())
        messages.reverse()
        return [{"role": m.role, "content": m.content} for m in messages]

    async def _complete(self, messages: list):
        response = await self.llm_client.chat.completions.create(
            model=settings.OPENAI_CHAT_MODEL,
            messages=messages,
            tools=TOOL_DEFINITIONS,
            tool_choice="auto",
            temperature=0.7,
            max_tokens=2000,
        )
        return response.choices[0].message if response.choices else None

    async def chat(self, message: str, user_id: int, conversation_id: Optional[str] = None) -> dict:
        conversation = None
        if conversation_id:
            conversation = await self._find_conversation(conversation_id, user_id)

        history = []
        if conversation is None:
            conversation = ChatConversation(user_id=user_id, title=message[:TITLE_LENGTH])
            self.db.add(conversation)
            await self.db.flush()
        else:
            history = await self._history(conversation.id)

        self.db.add(ChatMessage(conversation_id=conversation.id, role="user", content=message))
        await self.db.commit()

        messages = [{"role": "system", "content": SYSTEM_PROMPT}, *history, {"role": "user", "content": message}]

        assistant = await self._complete(messages)
        rounds = 0
        while assistant is not None and assistant.tool_calls and rounds < MAX_TOOL_ROUNDS:
            rounds += 1
            messages.append({
                "role": "assistant",
                "content": assistant.content or "",
                "tool_calls": [_tool_call_dict(tc) for tc in assistant.tool_calls],
            })
            for tool_call in assistant.tool_calls:
                result = await self.tools.execute(
                    tool_call.function.name or "",
                    _parse_arguments(tool_call.function.arguments),
                    user_id,
                )
                messages.append({"role": "tool", "tool_call_id": tool_call.id, "content": result})
            assistant = await self._complete(messages)

        if rounds >= MAX_TOOL_ROUNDS and assistant is not None and assistant.tool_calls:
            logger.warning(f"⚠️ Conversation {conversation.id}: limite de {MAX_TOOL_ROUNDS} tours d'outils atteinte")

        final_response = (assistant.content if assistant is not None else None) or FALLBACK_RESPONSE

        self.db.add(ChatMessage(conversation_id=conversation.id, role="assistant", content=final_response))
        conversation.updated_at = utcnow()
        await self.db.commit()

        return {"response": final_response, "conversation_id": conversation.id}

    async def get_conversations(self, user_id: int) -> List[ChatConversation]:
        result = await self.db.execute(
            select(ChatConversation)
            .where(ChatConversation.user_id == user_id)
            .order_by(ChatConversation.updated_at.desc())
        )
        return result.scalars().all()

    async def get_conversation(self, conversation_id: str, user_id: int) -> ChatConversation:
        result = await self.db.execute(
            select(ChatConversation)
            .where(ChatConversation.id == conversation_id, ChatConversation.user_id == user_id)
            .options(selectinload(ChatConversation.messages))
        )
        conversation = result.scalars().first()
        if not conversation:
            raise NotFoundError("Conversation non trouvée")
        return conversation

    async def delete_conversation(self, conversation_id: str, user_id: int) -> dict:
        await self.db.execute(
            delete(ChatConversation).where(
                ChatConversation.id == conversation_id,
                ChatConversation.user_id == user_id,
            )
        )
        await self.db.commit()
        return {"message": "Conversation supprimée"}

    @staticmethod
    def get_suggestions() -> List[str]:
        return list(SUGGESTIONS)
