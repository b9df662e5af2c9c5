from fastapi import Depends, Path
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dojo_schedule.core.exceptions import AuthenticationError, AuthorizationError
from dojo_schedule.core.sessions import SessionPrincipal, session_manager

security = HTTPBearer(
    scheme_name="Session token",
    description="Session token issued at login",
    auto_error=False,
)


async def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> SessionPrincipal:
    """Single place where session validity and expiry are checked"""
    if credentials is None or not credentials.credentials.strip():
        raise AuthenticationError("Authentication data is required")

    return session_manager.decode(credentials.credentials)


async def require_trainer(
    principal: SessionPrincipal = Depends(get_current_session),
) -> SessionPrincipal:
    if principal.role != "trainer":
        raise AuthorizationError("Only trainers can sign up for trainings")
    return principal


async def require_club_admin(
    club_id: str = Path(..., description="Club ID"),
    principal: SessionPrincipal = Depends(get_current_session),
) -> SessionPrincipal:
    if not principal.can_manage_club(club_id):
        raise AuthorizationError(f"Not allowed to manage club {club_id}")
    return principal


async def require_super_admin(
    principal: SessionPrincipal = Depends(get_current_session),
) -> SessionPrincipal:
    if not (principal.is_admin and principal.is_super_admin):
        raise AuthorizationError("Super admin rights required")
    return principal
