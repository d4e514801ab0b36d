import json
import logging
from typing import Tuple

from noken.config import settings

logger = logging.getLogger(__name__)

MODERATED_CONTENT = "⚠️ Ce commentaire a été modéré pour propos inapproprié."

MODERATION_PROMPT = """Tu es un modérateur de contenu. Analyse le commentaire suivant et détermine s'il contient des propos inappropriés (insultes, propos haineux, discriminatoires, vulgaires, menaçants, spam, ou tout contenu offensant).

Réponds UNIQUEMENT avec un JSON valide dans ce format exact:
{"appropriate": true} si le contenu est acceptable
{"appropriate": false} si le contenu est inapproprié

Ne réponds rien d'autre que ce JSON."""


async def moderate_content(client, content: str) -> Tuple[bool, str]:
    """
    Retourne (approprié, contenu à publier).

    Toute erreur du fournisseur ou réponse illisible laisse passer le contenu.
    """
    if client is None:
        return True, content

    try:
        response = await client.chat.completions.create(
            model=settings.OPENAI_MODERATION_MODEL,
            messages=[
                {"role": "system", "content": MODERATION_PROMPT},
                {"role": "user", "content": content},
            ],
            temperature=0,
            max_tokens=50,
        )
        raw = (response.choices[0].message.content or "").strip() if response.choices else ""
    except Exception as e:
        logger.error(f"❌ Erreur de modération, contenu accepté : {e}")
        return True, content

    try:
        verdict = json.loads(raw or '{"appropriate": true}')
    except json.JSONDecodeError:
        logger.warning(f"⚠️ Réponse de modération illisible, contenu accepté : {raw!r}")
        return True, content

    if isinstance(verdict, dict) and verdict.get("appropriate") is False:
        logger.info("🛡️ Commentaire modéré")
        return False, MODERATED_CONTENT
    return True, content
