import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from noken.auth import jwt_handler
from noken.auth.models import User
from noken.db.session import get_db

logger = logging.getLogger(__name__)

# Utilisé pour extraire le token depuis le header Authorization
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# 🔒 Récupération obligatoire de l'utilisateur courant
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    🔐 Récupère l'utilisateur courant à partir du token d'accès.

    Refuse les tokens invalides ou expirés, les utilisateurs supprimés et les comptes désactivés.
    """
    payload = jwt_handler.decode_access_token(token)
    if payload is None:
        raise _unauthorized("Token invalide ou expiré")

    try:
        user_id = int(payload["sub"])
    except (ValueError, TypeError):
        logger.warning(f"⚠️ Champ 'sub' mal formé dans token : {payload.get('sub')}")
        raise _unauthorized("Token invalide")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if not user:
        logger.warning(f"❌ Utilisateur introuvable : id={user_id}")
        raise _unauthorized("Utilisateur non trouvé")
    if not user.is_active:
        logger.warning(f"⛔ Compte désactivé : id={user_id}")
        raise _unauthorized("Votre compte a été désactivé")

    return user
