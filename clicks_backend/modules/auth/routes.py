from fastapi import APIRouter, Depends
from clicks_backend.database.supabase_client import get_auth_supabase, get_service_supabase
from clicks_backend.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    OAuthProvider, OAuthUrlResponse
)
from clicks_backend.modules.auth.service import AuthService
from clicks_backend.core.dependencies import get_current_session, get_current_token
from clicks_backend.core.session import SessionProvider, UserSession, get_session_provider
from supabase import Client

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(
    supabase: Client = Depends(get_auth_supabase),
    admin_supabase: Client = Depends(get_service_supabase),
    sessions: SessionProvider = Depends(get_session_provider)
) -> AuthService:
    return AuthService(supabase, admin_supabase, sessions)


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.get("/oauth/{provider}", response_model=OAuthUrlResponse)
async def oauth_sign_in(
    provider: OAuthProvider,
    service: AuthService = Depends(get_auth_service)
):
    """Get the URL that starts sign-in with an OAuth provider"""
    return service.oauth_url(provider)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and forget the cached session"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserSession)
async def get_current_user(
    session: UserSession = Depends(get_current_session)
):
    """Get current authenticated user"""
    return session
