import logging
from typing import Union

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth import schemas
from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.auth.services import AuthService
from noken.db.session import get_db
from noken.schemas import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def register(payload: schemas.UserRegister, service: AuthService = Depends(get_auth_service)):
    return await service.register(
        email=payload.email,
        raw_password=payload.password,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )


@router.post(
    "/login",
    response_model=Union[schemas.TokenResponse, schemas.VerificationRequired],
)
async def login(payload: schemas.UserLogin, service: AuthService = Depends(get_auth_service)):
    return await service.login(payload.email, payload.password)


@router.post("/verify-email", response_model=schemas.TokenResponse)
async def verify_email(payload: schemas.VerifyEmailRequest, service: AuthService = Depends(get_auth_service)):
    return await service.verify_email(payload.email, payload.code)


@router.post("/resend-code", response_model=MessageResponse)
async def resend_code(payload: schemas.EmailRequest, service: AuthService = Depends(get_auth_service)):
    return await service.resend_code(payload.email)


@router.post("/google", response_model=schemas.TokenResponse)
async def google_login(payload: schemas.GoogleLoginRequest, service: AuthService = Depends(get_auth_service)):
    return await service.google_login(payload.id_token)


@router.post("/refresh", response_model=schemas.TokenResponse)
async def refresh(payload: schemas.RefreshRequest, service: AuthService = Depends(get_auth_service)):
    return await service.refresh(payload.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return await service.logout(current_user)


@router.get("/me", response_model=schemas.UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(payload: schemas.EmailRequest, service: AuthService = Depends(get_auth_service)):
    return await service.forgot_password(payload.email)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(payload: schemas.ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    return await service.reset_password(payload.token, payload.new_password)


@router.get("/validate-reset-token")
async def validate_reset_token(token: str = Query(...), service: AuthService = Depends(get_auth_service)):
    return await service.validate_reset_token(token)


@router.get("/info")
async def info():
    return {
        "message": "API d'authentification Noken Declic",
        "endpoints": {
            "register": "POST /auth/register",
            "login": "POST /auth/login",
            "verifyEmail": "POST /auth/verify-email",
            "resendCode": "POST /auth/resend-code",
            "google": "POST /auth/google",
            "refresh": "POST /auth/refresh",
            "logout": "POST /auth/logout",
            "me": "GET /auth/me",
            "forgotPassword": "POST /auth/forgot-password",
            "resetPassword": "POST /auth/reset-password",
        },
    }
