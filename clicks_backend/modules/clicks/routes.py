from fastapi import APIRouter, Depends, Request, Response
from clicks_backend.database.supabase_client import get_supabase, get_service_supabase
from clicks_backend.modules.clicks.schemas import (
    ClickCreationResult, ClickResponse, ClickMemberAdd, ClickMemberResponse, InvitableUser
)
from clicks_backend.modules.clicks.service import ClickService
from clicks_backend.modules.clicks.workflow import ClickCreationWorkflow
from clicks_backend.core.dependencies import (
    get_current_session, get_optional_session, check_click_access, check_click_admin
)
from clicks_backend.core.notifications import Notifier, get_notifier
from clicks_backend.core.session import UserSession
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/clicks", tags=["clicks"])

_STATUS_CODES = {
    "success": 201,
    "validation_error": 422,
    "unauthenticated": 401,
    "creation_failed": 502,
    "partial_failure": 207,
}


def get_click_service(supabase: Client = Depends(get_supabase)) -> ClickService:
    return ClickService(supabase)


def get_click_workflow(
    supabase: Client = Depends(get_supabase),
    admin_supabase: Client = Depends(get_service_supabase),
    notifier: Notifier = Depends(get_notifier)
) -> ClickCreationWorkflow:
    return ClickCreationWorkflow(supabase, notifier, admin_supabase=admin_supabase)


@router.post("", response_model=ClickCreationResult, status_code=201)
async def create_click(
    request: Request,
    response: Response,
    session: Optional[UserSession] = Depends(get_optional_session),
    workflow: ClickCreationWorkflow = Depends(get_click_workflow)
):
    """Create a click, make the caller its admin and invite the selected users"""
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    result = workflow.run(payload, session)
    response.status_code = _STATUS_CODES[result.status]
    return result


@router.get("", response_model=List[ClickResponse])
async def list_clicks(
    limit: int = 20,
    offset: int = 0,
    session: UserSession = Depends(get_current_session),
    service: ClickService = Depends(get_click_service)
):
    """Dashboard: clicks the caller created or belongs to"""
    return service.list_clicks(session.id, limit=limit, offset=offset)


@router.get("/invitable-users", response_model=List[InvitableUser])
async def list_invitable_users(
    session: UserSession = Depends(get_current_session),
    service: ClickService = Depends(get_click_service)
):
    return service.list_invitable_users(session.id)


@router.get("/{click_id}", response_model=ClickResponse)
async def get_click(
    click_id: str,
    session: UserSession = Depends(get_current_session),
    service: ClickService = Depends(get_click_service),
    supabase: Client = Depends(get_supabase)
):
    """Get click by ID (only for its creator and members)"""
    check_click_access(click_id, session, supabase)
    return service.get_click(click_id)


@router.get("/{click_id}/members", response_model=List[ClickMemberResponse])
async def list_members(
    click_id: str,
    session: UserSession = Depends(get_current_session),
    service: ClickService = Depends(get_click_service),
    supabase: Client = Depends(get_supabase)
):
    check_click_access(click_id, session, supabase)
    return service.list_members(click_id)


@router.post("/{click_id}/members", response_model=ClickMemberResponse, status_code=201)
async def add_member(
    click_id: str,
    member_data: ClickMemberAdd,
    session: UserSession = Depends(get_current_session),
    service: ClickService = Depends(get_click_service),
    supabase: Client = Depends(get_supabase)
):
    """Add a member (click admins only)"""
    check_click_admin(click_id, session, supabase)
    return service.add_member(click_id, member_data)


@router.delete("/{click_id}/members/{user_id}", status_code=204)
async def remove_member(
    click_id: str,
    user_id: str,
    session: UserSession = Depends(get_current_session),
    service: ClickService = Depends(get_click_service),
    supabase: Client = Depends(get_supabase)
):
    """Remove a member (click admins only, or a member leaving)"""
    if user_id != session.id:
        check_click_admin(click_id, session, supabase)
    service.remove_member(click_id, user_id)
    return None
