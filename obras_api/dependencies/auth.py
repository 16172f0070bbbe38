from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from ..config import settings

USER_ID_HEADER = "x-user-id"
USER_ROLE_HEADER = "x-user-role"


@dataclass
class AuthContext:
    """Identity forwarded by the session layer in front of this service."""

    user_id: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return (self.role or "").strip().lower() in {role.lower() for role in settings.admin_roles}


def require_user(request: Request) -> AuthContext:
    user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={"error": "Authentication required"})

    context = AuthContext(user_id=user_id, role=request.headers.get(USER_ROLE_HEADER))
    request.state.user_id = context.user_id
    return context


def require_admin(context: AuthContext = Depends(require_user)) -> AuthContext:
    if not context.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail={"error": "Only an admin can delete documents."})
    return context
