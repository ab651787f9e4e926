from supabase import Client
from clicks_backend.config.settings import settings
from clicks_backend.core.exceptions import (
    BackendError, NotFound, StorageUploadFailed, ValidationError
)
from clicks_backend.modules.profiles.editor import ProfileEditor
from clicks_backend.modules.profiles.schemas import ProfileResponse
from pydantic import ValidationError as PydanticValidationError
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import mimetypes
import logging
import os
import uuid

logger = logging.getLogger(__name__)


def _parse_profile(row: Dict[str, Any]) -> ProfileResponse:
    try:
        return ProfileResponse.model_validate(row)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)


def avatar_path(user_id: str, filename: Optional[str], content_type: Optional[str]) -> str:
    """<user-id>/<random-id>.<original-extension>"""
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    if not ext and content_type:
        ext = (mimetypes.guess_extension(content_type) or "").lstrip(".")
    name = uuid.uuid4().hex
    return f"{user_id}/{name}.{ext}" if ext else f"{user_id}/{name}"


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching profile {user_id}: {e}")
            raise BackendError("Could not load your profile", cause=e)

        if not result.data:
            raise NotFound("Profile not found")
        return _parse_profile(result.data[0])

    def update_profile(self, user_id: str, payload: Dict[str, Any]) -> ProfileResponse:
        """Validate the submitted form and write it in a single update"""
        editor = ProfileEditor(self.get_profile(user_id))
        editor.begin_edit()
        return editor.submit(payload, lambda form: self._write(user_id, form.to_row()))

    def _write(self, user_id: str, update_data: Dict[str, Any]) -> ProfileResponse:
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise BackendError("There was an error updating your profile", cause=e)

        if not result.data:
            raise NotFound("Profile not found")
        return _parse_profile(result.data[0])

    def upload_avatar(
        self,
        user_id: str,
        contents: bytes,
        filename: Optional[str],
        content_type: Optional[str],
    ) -> ProfileResponse:
        """Store a new avatar image and point the profile at it.

        The previous object stays in the bucket.
        """
        if not content_type or not content_type.startswith("image/"):
            raise ValidationError([{"field": "file", "message": "Avatar must be an image"}])
        if not contents:
            raise ValidationError([{"field": "file", "message": "Avatar file is empty"}])
        if len(contents) > settings.avatar_max_bytes:
            raise ValidationError([{
                "field": "file",
                "message": f"Avatar must be at most {settings.avatar_max_bytes} bytes"
            }])

        current = self.get_profile(user_id)
        path = avatar_path(user_id, filename, content_type)
        bucket = self.supabase.storage.from_(settings.avatar_bucket)
        try:
            bucket.upload(path, contents, {"content-type": content_type})
            public_url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Failed to upload avatar to {settings.avatar_bucket}/{path}: {e}")
            raise StorageUploadFailed("There was an error uploading your avatar", cause=e)

        if current.avatar_url:
            logger.info(f"Replacing avatar of {user_id}; previous object kept at {current.avatar_url}")
        return self._write(user_id, {"avatar_url": public_url})
