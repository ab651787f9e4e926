from fastapi import APIRouter, Body, Depends, File, UploadFile
from clicks_backend.database.supabase_client import get_supabase
from clicks_backend.modules.profiles.schemas import ProfileResponse, ProfileResult
from clicks_backend.modules.profiles.service import ProfileService
from clicks_backend.core.dependencies import get_current_session
from clicks_backend.core.notifications import Notifier, get_notifier
from clicks_backend.core.session import UserSession
from supabase import Client
from typing import Any, Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    session: UserSession = Depends(get_current_session),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(session.id)


@router.put("/me", response_model=ProfileResult)
async def update_my_profile(
    payload: Dict[str, Any] = Body(...),
    session: UserSession = Depends(get_current_session),
    service: ProfileService = Depends(get_profile_service),
    notifier: Notifier = Depends(get_notifier)
):
    """Save the edited profile form"""
    profile = service.update_profile(session.id, payload)
    notification = notifier.notify("Profile updated", "Your profile has been updated successfully.")
    return ProfileResult(profile=profile, notification=notification)


@router.post("/me/avatar", response_model=ProfileResult)
async def upload_my_avatar(
    file: UploadFile = File(...),
    session: UserSession = Depends(get_current_session),
    service: ProfileService = Depends(get_profile_service),
    notifier: Notifier = Depends(get_notifier)
):
    """Upload a new avatar image"""
    contents = await file.read()
    profile = service.upload_avatar(session.id, contents, file.filename, file.content_type)
    notification = notifier.notify("Avatar updated", "Your new avatar has been saved.")
    return ProfileResult(profile=profile, notification=notification)
