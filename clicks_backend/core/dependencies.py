"""
Core dependencies for route protection and click access checks
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from clicks_backend.database.supabase_client import get_supabase
from clicks_backend.core.exceptions import BackendError, Forbidden, NotFound, Unauthenticated
from clicks_backend.core.session import SessionProvider, UserSession, get_session_provider
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return credentials.credentials


def get_current_session(
    token: str = Depends(get_current_token),
    supabase: Client = Depends(get_supabase),
    provider: SessionProvider = Depends(get_session_provider)
) -> UserSession:
    """Resolve the caller; raises Unauthenticated when there is none"""
    return provider.resolve(supabase, token)


def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    supabase: Client = Depends(get_supabase),
    provider: SessionProvider = Depends(get_session_provider)
) -> Optional[UserSession]:
    """Like get_current_session but returns None so workflows can report it themselves"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return provider.resolve(supabase, credentials.credentials)
    except Unauthenticated:
        return None


def get_click_creator(click_id: str, supabase: Client) -> str:
    try:
        result = supabase.table("clicks")\
            .select("created_by")\
            .eq("id", click_id)\
            .execute()
    except Exception as e:
        logger.error(f"Error checking access to click {click_id}: {e}")
        raise BackendError("Could not check access to the Click", cause=e)
    if not result.data:
        raise NotFound("Click not found")
    return result.data[0]["created_by"]


def get_member_role(click_id: str, user_id: str, supabase: Client) -> Optional[str]:
    try:
        result = supabase.table("click_members")\
            .select("role")\
            .eq("click_id", click_id)\
            .eq("user_id", user_id)\
            .execute()
    except Exception as e:
        logger.error(f"Error reading membership of click {click_id}: {e}")
        raise BackendError("Could not check access to the Click", cause=e)
    if not result.data:
        return None
    return result.data[0].get("role") or "member"


def check_click_access(click_id: str, session: UserSession, supabase: Client) -> UserSession:
    """Allow the click's creator or any of its members"""
    creator = get_click_creator(click_id, supabase)
    if creator == session.id:
        return session
    if get_member_role(click_id, session.id, supabase) is not None:
        return session
    raise Forbidden("You must be a member of this Click")


def check_click_admin(click_id: str, session: UserSession, supabase: Client) -> UserSession:
    """Allow admin members only"""
    get_click_creator(click_id, supabase)
    if get_member_role(click_id, session.id, supabase) == "admin":
        return session
    raise Forbidden("You must be an admin of this Click")
