"""
Client OpenAI partagé et lecture des réponses JSON du modèle.

Le client est fourni par la dépendance `get_llm_client`, que les tests remplacent
via `app.dependency_overrides`.
"""
import json
import logging
import re
from functools import lru_cache
from typing import Optional

from openai import AsyncOpenAI

from noken.config import settings
from noken.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)


@lru_cache
def _build_client(api_key: str) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key)


def get_llm_client() -> Optional[AsyncOpenAI]:
    if not settings.OPENAI_API_KEY:
        logger.warning("⚠️ OPENAI_API_KEY non configurée")
        return None
    return _build_client(settings.OPENAI_API_KEY)


def require_client(client) -> AsyncOpenAI:
    if client is None:
        raise ServiceUnavailableError("Le service d'intelligence artificielle n'est pas configuré")
    return client


async def complete(client, model: str, messages: list, **kwargs) -> str:
    """Appel chat.completions simple, renvoie le texte de la première réponse."""
    response = await client.chat.completions.create(model=model, messages=messages, **kwargs)
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def extract_json(text: str) -> Optional[dict]:
    """
    Extrait un objet JSON d'une réponse de modèle.

    Essaie le texte brut, puis un bloc ```json```, puis le premier `{` jusqu'au dernier `}`.
    """
    if not text or not text.strip():
        return None

    try:
        parsed = json.loads(text.strip())
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    for match in re.findall(r"```(?:json)?\s*([\s\S]*?)\s*```", text, re.IGNORECASE):
        try:
            parsed = json.loads(match)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, dict):
            return parsed
    return None
