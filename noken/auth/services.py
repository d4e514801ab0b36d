import logging
from datetime import timedelta
from typing import Optional

import aiosmtplib
import requests
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth import jwt_handler, password
from noken.auth.models import EmailVerification, PasswordReset, User
from noken.auth.schemas import TokenResponse, UserSummary
from noken.config import settings
from noken.exceptions import BadRequestError, ConflictError, UnauthorizedError
from noken.utils.avatar import generate_default_avatar_url
from noken.utils.code import generate_reset_token, generate_verification_code
from noken.utils.dates import utcnow
from noken.utils.email import MailDisabledError, send_password_reset_email, send_verification_code

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_INFO_URL = "https://oauth2.googleapis.com/tokeninfo"

MAIL_ERRORS = (MailDisabledError, aiosmtplib.SMTPException, OSError)

RESET_GENERIC_MESSAGE = "Si un compte existe avec cet email, un lien de réinitialisation a été envoyé"
INVALID_CREDENTIALS = "Email ou mot de passe incorrect"
ACCOUNT_DISABLED = "Votre compte a été désactivé"
INVALID_REFRESH = "Token de rafraîchissement invalide ou expiré"


def verify_google_id_token(id_token: str) -> Optional[dict]:
    """Vérifie un ID token Google auprès de tokeninfo. Retourne les claims ou None."""
    try:
        response = requests.get(GOOGLE_TOKEN_INFO_URL, params={"id_token": id_token}, timeout=10)
    except requests.RequestException as e:
        logger.error(f"❌ Google tokeninfo injoignable : {e}")
        return None
    if response.status_code != 200:
        logger.warning(f"⚠️ Token Google refusé ({response.status_code})")
        return None
    claims = response.json()
    if settings.GOOGLE_CLIENT_ID and claims.get("aud") != settings.GOOGLE_CLIENT_ID:
        logger.warning("⚠️ Token Google émis pour un autre client")
        return None
    if not claims.get("email") or not claims.get("sub"):
        return None
    return claims


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalars().first()

    # ==================== INSCRIPTION / VÉRIFICATION ====================

    async def register(self, email: str, raw_password: str, username=None, first_name=None, last_name=None) -> dict:
        existing = await self._get_by_email(email)
        if existing:
            if not existing.is_email_verified:
                await self.send_verification_code(existing)
                return {"message": "Un code de vérification a été renvoyé à votre email"}
            raise ConflictError("Un utilisateur avec cet email existe déjà")

        user = User(
            email=email.lower(),
            password=password.hash_password(raw_password),
            username=username or email.split("@")[0],
            first_name=first_name,
            last_name=last_name,
            picture_url=generate_default_avatar_url(first_name, last_name, fallback=email.split("@")[0]),
            is_email_verified=False,
        )
        self.db.add(user)
        await self.db.commit()
        logger.info(f"Utilisateur inscrit: id={user.id}, email={user.email}")

        await self.send_verification_code(user)
        return {"message": "Un code de vérification a été envoyé à votre email"}

    async def send_verification_code(self, user: User) -> None:
        code = generate_verification_code()
        await self.db.execute(delete(EmailVerification).where(EmailVerification.user_id == user.id))
        self.db.add(
            EmailVerification(
                user_id=user.id,
                code=code,
                expires_at=utcnow() + timedelta(minutes=settings.VERIFICATION_CODE_EXPIRE_MINUTES),
            )
        )
        await self.db.commit()

        try:
            await send_verification_code(user.email, code)
        except MAIL_ERRORS as e:
            logger.error(f"❌ Envoi du code à {user.email} impossible : {e}")
            logger.info(f"[DEV] Code de vérification pour {user.email}: {code}")

    async def verify_email(self, email: str, code: str) -> TokenResponse:
        user = await self._get_by_email(email)
        if not user:
            raise BadRequestError("Utilisateur non trouvé")

        result = await self.db.execute(
            select(EmailVerification)
            .where(
                EmailVerification.user_id == user.id,
                EmailVerification.code == code,
                EmailVerification.expires_at > utcnow(),
            )
            .order_by(EmailVerification.created_at.desc(), EmailVerification.id.desc())
        )
        if result.scalars().first() is None:
            raise BadRequestError("Code de vérification invalide ou expiré")

        user.is_email_verified = True
        await self.db.execute(delete(EmailVerification).where(EmailVerification.user_id == user.id))
        await self.db.commit()
        logger.info(f"✅ Email vérifié pour user_id={user.id}")
        return await self.generate_tokens(user)

    async def resend_code(self, email: str) -> dict:
        user = await self._get_by_email(email)
        if not user:
            raise BadRequestError("Utilisateur non trouvé")
        if user.is_email_verified:
            raise BadRequestError("Email déjà vérifié")
        await self.send_verification_code(user)
        return {"message": "Un nouveau code a été envoyé"}

    # ==================== CONNEXION ====================

    async def login(self, email: str, raw_password: str):
        user = await self._get_by_email(email)
        if not user or not password.verify_password(raw_password, user.password):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not user.is_active:
            raise UnauthorizedError(ACCOUNT_DISABLED)
        if not user.is_email_verified and not user.is_google_login:
            await self.send_verification_code(user)
            return {"requiresVerification": True, "message": "Veuillez vérifier votre email"}
        return await self.generate_tokens(user)

    async def google_login(self, id_token: str) -> TokenResponse:
        claims = await run_in_threadpool(verify_google_id_token, id_token)
        if claims is None:
            raise UnauthorizedError("Token Google invalide")
        return await self.login_with_google_profile(
            google_id=claims["sub"],
            email=claims["email"],
            first_name=claims.get("given_name"),
            last_name=claims.get("family_name"),
            picture_url=claims.get("picture"),
        )

    async def login_with_google_profile(self, google_id: str, email: str, first_name=None, last_name=None, picture_url=None) -> TokenResponse:
        result = await self.db.execute(select(User).where(User.google_id == google_id))
        user = result.scalars().first()

        if not user:
            user = await self._get_by_email(email)
            if user:
                # Liaison du compte existant
                user.google_id = google_id
                user.is_google_login = True
                user.is_email_verified = True
                user.picture_url = user.picture_url or picture_url
            else:
                user = User(
                    email=email.lower(),
                    google_id=google_id,
                    username=email.split("@")[0],
                    first_name=first_name,
                    last_name=last_name,
                    picture_url=picture_url,
                    is_google_login=True,
                    is_email_verified=True,
                )
                self.db.add(user)
            await self.db.commit()

        if not user.is_active:
            raise UnauthorizedError(ACCOUNT_DISABLED)
        return await self.generate_tokens(user)

    # ==================== TOKENS ====================

    async def generate_tokens(self, user: User) -> TokenResponse:
        access_token = jwt_handler.create_access_token(user.id, user.email, user.role)
        refresh_token = jwt_handler.create_refresh_token(user.id)
        user.refresh_token = refresh_token
        await self.db.commit()
        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            user=UserSummary.model_validate(user),
        )

    async def refresh(self, refresh_token: str) -> TokenResponse:
        payload = jwt_handler.decode_refresh_token(refresh_token)
        if payload is None:
            raise UnauthorizedError(INVALID_REFRESH)

        result = await self.db.execute(select(User).where(User.id == int(payload["sub"])))
        user = result.scalars().first()
        if not user or user.refresh_token != refresh_token:
            logger.warning(f"⚠️ Refresh token non reconnu pour sub={payload.get('sub')}")
            raise UnauthorizedError(INVALID_REFRESH)
        if not user.is_active:
            raise UnauthorizedError(ACCOUNT_DISABLED)
        return await self.generate_tokens(user)

    async def logout(self, user: User) -> dict:
        user.refresh_token = None
        await self.db.commit()
        return {"message": "Déconnexion réussie"}

    # ==================== MOT DE PASSE OUBLIÉ ====================

    async def forgot_password(self, email: str) -> dict:
        user = await self._get_by_email(email)
        if not user:
            return {"message": RESET_GENERIC_MESSAGE}
        if user.is_google_login and not user.password:
            return {"message": "Ce compte utilise la connexion Google. Veuillez vous connecter avec Google."}

        token = generate_reset_token()
        await self.db.execute(delete(PasswordReset).where(PasswordReset.user_id == user.id))
        self.db.add(
            PasswordReset(
                user_id=user.id,
                token=token,
                expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
            )
        )
        await self.db.commit()

        reset_link = f"{settings.FRONTEND_URL}/reset-password?token={token}"
        try:
            await send_password_reset_email(user.email, reset_link)
        except MAIL_ERRORS as e:
            logger.error(f"❌ Envoi du lien de réinitialisation à {user.email} impossible : {e}")
            logger.info(f"[DEV] Lien de réinitialisation pour {user.email}: {reset_link}")

        return {"message": RESET_GENERIC_MESSAGE}

    async def _get_valid_reset(self, token: str, expired_message: str) -> PasswordReset:
        result = await self.db.execute(select(PasswordReset).where(PasswordReset.token == token))
        reset = result.scalars().first()
        if not reset:
            raise BadRequestError("Lien de réinitialisation invalide")
        if reset.expires_at < utcnow():
            await self.db.delete(reset)
            await self.db.commit()
            raise BadRequestError(expired_message)
        return reset

    async def reset_password(self, token: str, new_password: str) -> dict:
        reset = await self._get_valid_reset(token, "Ce lien a expiré. Veuillez demander un nouveau lien.")
        result = await self.db.execute(select(User).where(User.id == reset.user_id))
        user = result.scalars().one()
        user.password = password.hash_password(new_password)
        await self.db.execute(delete(PasswordReset).where(PasswordReset.user_id == user.id))
        await self.db.commit()
        logger.info(f"🔑 Mot de passe réinitialisé pour user_id={user.id}")
        return {"message": "Votre mot de passe a été réinitialisé avec succès"}

    async def validate_reset_token(self, token: str) -> dict:
        await self._get_valid_reset(token, "Ce lien a expiré")
        return {"valid": True}
