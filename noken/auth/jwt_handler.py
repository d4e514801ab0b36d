import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from noken.config import settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(data: dict, secret: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    to_encode["sub"] = str(to_encode["sub"])
    return jwt.encode(to_encode, secret, algorithm=settings.ALGORITHM)


def create_access_token(user_id: int, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crée le token d'accès signé (courte durée).

    :param user_id: identifiant de l'utilisateur, placé dans 'sub'
    :param expires_delta: durée de validité, ACCESS_TOKEN_EXPIRE_MINUTES par défaut
    """
    payload = {"sub": user_id, "email": email, "role": role, "type": ACCESS_TOKEN_TYPE}
    token = _encode(
        payload,
        settings.JWT_SECRET,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    logger.info(f"✅ Token d'accès généré pour user_id={user_id}")
    return token


def create_refresh_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    # jti garantit un token différent à chaque rotation
    payload = {"sub": user_id, "type": REFRESH_TOKEN_TYPE, "jti": uuid.uuid4().hex}
    return _encode(
        payload,
        settings.JWT_REFRESH_SECRET,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def _decode(token: str, secret: str, expected_type: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"❌ Échec de décodage du token : {e}")
        return None

    if not payload.get("sub"):
        logger.warning("⚠️ Token valide mais champ 'sub' manquant dans le payload.")
        return None
    if payload.get("type") != expected_type:
        logger.warning(f"⚠️ Type de token inattendu : {payload.get('type')}")
        return None
    return payload


def decode_access_token(token: str) -> Optional[dict]:
    """Retourne le payload si le token d'accès est valide, sinon None."""
    return _decode(token, settings.JWT_SECRET, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Optional[dict]:
    return _decode(token, settings.JWT_REFRESH_SECRET, REFRESH_TOKEN_TYPE)
