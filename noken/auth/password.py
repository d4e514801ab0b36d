from passlib.context import CryptContext

from noken.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
