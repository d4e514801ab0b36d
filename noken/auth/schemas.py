from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from noken.auth.models import Role, StatutProfessionnel, Sexe
from noken.schemas import CamelModel


class UserRegister(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    username: Optional[str] = Field(None, max_length=100)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class UserLogin(CamelModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_required(cls, v):
        if not v:
            raise ValueError("Mot de passe requis")
        return v


class VerifyEmailRequest(CamelModel):
    email: EmailStr
    code: str

    @field_validator("code")
    @classmethod
    def code_required(cls, v):
        if not v or v.strip() == "":
            raise ValueError("Code de vérification requis")
        return v.strip()


class EmailRequest(CamelModel):
    email: EmailStr


class RefreshRequest(CamelModel):
    refresh_token: str


class GoogleLoginRequest(CamelModel):
    id_token: str


class ResetPasswordRequest(CamelModel):
    token: str
    new_password: str = Field(..., min_length=6)


class UserSummary(CamelModel):
    id: int
    email: str
    username: Optional[str] = None
    role: Role
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    picture_url: Optional[str] = None


class UserOut(UserSummary):
    statut_professionnel: StatutProfessionnel
    pays: Optional[str] = None
    commune: Optional[str] = None
    quartier: Optional[str] = None
    sexe: Sexe
    date_naissance: Optional[date] = None
    adresse: Optional[str] = None
    telephone: Optional[str] = None
    handicap: bool = False
    type_handicap: Optional[str] = None
    is_active: bool
    is_google_login: bool
    is_email_verified: bool
    created_at: datetime


class AuthorOut(CamelModel):
    id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    picture_url: Optional[str] = None


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    user: UserSummary


class VerificationRequired(BaseModel):
    requiresVerification: bool = True
    message: str
