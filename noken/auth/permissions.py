from fastapi import Depends, HTTPException, status

from noken.auth.dependencies import get_current_user
from noken.auth.models import Role, User
from noken.exceptions import ForbiddenError


def require_role(*roles: Role):
    allowed = {r.value if isinstance(r, Role) else r for r in roles}

    def wrapper(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Accès interdit (rôle requis)",
            )
        return user

    return wrapper


require_admin = require_role(Role.ADMIN)


def can_modify(actor: User, author_id: int) -> bool:
    return actor.id == author_id or actor.role == Role.ADMIN.value


def ensure_owner_or_admin(actor: User, author_id: int, message: str) -> None:
    """Seul l'auteur d'une ressource ou un administrateur peut la modifier ou la supprimer."""
    if not can_modify(actor, author_id):
        raise ForbiddenError(message)
