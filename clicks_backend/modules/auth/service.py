from supabase import Client
from clicks_backend.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, OAuthUrlResponse
)
from clicks_backend.config.settings import settings
from clicks_backend.core.exceptions import BackendError, ClicksError, Conflict, Unauthenticated
from clicks_backend.core.session import SessionProvider
import logging

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client, admin_supabase: Client, sessions: SessionProvider):
        # supabase: a client owned by this request; sign-in stores its session there
        self.supabase = supabase
        self.admin_supabase = admin_supabase
        self.sessions = sessions

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        try:
            user_metadata = {}
            if register_data.full_name:
                user_metadata["full_name"] = register_data.full_name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise BackendError("Failed to register user")

            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully"
            )
        except ClicksError:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise Conflict("User already exists")
            logger.error(f"Registration failed: {error_message}")
            raise BackendError(f"Registration failed: {error_message}", cause=e)

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise Unauthenticated("Invalid email or password")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                refresh_token=auth_response.session.refresh_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except ClicksError:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise Unauthenticated("Invalid email or password")
            logger.error(f"Login failed: {error_message}")
            raise BackendError(f"Login failed: {error_message}", cause=e)

    def oauth_url(self, provider: str) -> OAuthUrlResponse:
        """Build the provider sign-in URL; the browser follows it and comes back with a session"""
        options = {
            "query_params": {
                "access_type": "offline",
                "prompt": "consent",
            }
        }
        if settings.oauth_redirect_url:
            options["redirect_to"] = settings.oauth_redirect_url
        try:
            response = self.supabase.auth.sign_in_with_oauth({
                "provider": provider,
                "options": options
            })
        except Exception as e:
            logger.error(f"OAuth sign-in with {provider} failed: {e}")
            raise BackendError("An unexpected error occurred during sign in", cause=e)
        return OAuthUrlResponse(provider=provider, url=response.url)

    def logout(self, token: str) -> bool:
        """Revoke the caller's token and forget only that cached session"""
        self.sessions.invalidate(token)
        try:
            self.admin_supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.error(f"Sign out failed: {e}")
            raise BackendError("There was a problem signing out", cause=e)
