from supabase import Client
from clicks_backend.core.exceptions import BackendError, ClicksError, Conflict, NotFound, ValidationError
from clicks_backend.modules.clicks.schemas import (
    ClickResponse, ClickMemberAdd, ClickMemberResponse, InvitableUser
)
from clicks_backend.modules.clicks.workflow import parse_click
from pydantic import ValidationError as PydanticValidationError
from typing import Any, Dict, List
import logging

logger = logging.getLogger(__name__)


def parse_member(row: Dict[str, Any]) -> ClickMemberResponse:
    try:
        return ClickMemberResponse.model_validate(row)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)


def parse_invitable_user(row: Dict[str, Any]) -> InvitableUser:
    try:
        return InvitableUser.model_validate(row)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)


class ClickService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_click(self, click_id: str) -> ClickResponse:
        """Get click by ID"""
        try:
            result = self.supabase.table("clicks")\
                .select("*")\
                .eq("id", click_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching click {click_id}: {e}")
            raise BackendError("Could not load the Click", cause=e)

        if not result.data:
            raise NotFound("Click not found")
        return parse_click(result.data[0])

    def list_clicks(self, user_id: str, limit: int = 20, offset: int = 0) -> List[ClickResponse]:
        """Clicks the user belongs to or created, newest first.

        Created clicks are included even without a membership row so a click
        left without members by a failed creation still shows up.
        """
        try:
            members_result = self.supabase.table("click_members")\
                .select("click_id")\
                .eq("user_id", user_id)\
                .execute()
            click_ids = list({m["click_id"] for m in members_result.data or []})

            rows = {}
            if click_ids:
                joined = self.supabase.table("clicks")\
                    .select("*")\
                    .in_("id", click_ids)\
                    .execute()
                for row in joined.data or []:
                    rows[row["id"]] = row

            created = self.supabase.table("clicks")\
                .select("*")\
                .eq("created_by", user_id)\
                .execute()
            for row in created.data or []:
                rows[row["id"]] = row
        except Exception as e:
            logger.error(f"Error listing clicks for user {user_id}: {e}")
            raise BackendError("Could not load your Clicks", cause=e)

        clicks = [parse_click(row) for row in rows.values()]
        clicks.sort(key=lambda c: c.created_at, reverse=True)
        return clicks[offset:offset + limit]

    def list_members(self, click_id: str) -> List[ClickMemberResponse]:
        """List all members of a click"""
        try:
            result = self.supabase.table("click_members")\
                .select("*")\
                .eq("click_id", click_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing members of click {click_id}: {e}")
            raise BackendError("Could not load members", cause=e)

        return [parse_member(member) for member in result.data or []]

    def add_member(self, click_id: str, member_data: ClickMemberAdd) -> ClickMemberResponse:
        """Add a member to the click"""
        try:
            existing = self.supabase.table("click_members")\
                .select("user_id")\
                .eq("click_id", click_id)\
                .eq("user_id", member_data.user_id)\
                .execute()
            if existing.data:
                raise Conflict("User is already a member of this Click")

            result = self.supabase.table("click_members").insert({
                "click_id": click_id,
                "user_id": member_data.user_id,
                "role": member_data.role
            }).execute()
        except ClicksError:
            raise
        except Exception as e:
            logger.error(f"Error adding member to click {click_id}: {e}")
            raise BackendError("Failed to add member", cause=e)

        if not result.data:
            raise BackendError("Failed to add member")
        return parse_member(result.data[0])

    def remove_member(self, click_id: str, user_id: str) -> bool:
        """Remove a member, refusing to remove the last admin"""
        try:
            members = self.supabase.table("click_members")\
                .select("user_id, role")\
                .eq("click_id", click_id)\
                .execute()
            rows = members.data or []
            target = next((m for m in rows if m["user_id"] == user_id), None)
            if target is None:
                raise NotFound("Member not found")
            admins = [m for m in rows if m.get("role") == "admin"]
            if target.get("role") == "admin" and len(admins) <= 1:
                raise Conflict("A Click must keep at least one admin")

            result = self.supabase.table("click_members")\
                .delete()\
                .eq("click_id", click_id)\
                .eq("user_id", user_id)\
                .execute()
        except ClicksError:
            raise
        except Exception as e:
            logger.error(f"Error removing member {user_id} from click {click_id}: {e}")
            raise BackendError("Failed to remove member", cause=e)

        return len(result.data or []) > 0

    def list_invitable_users(self, user_id: str) -> List[InvitableUser]:
        """Profiles other than the caller, for picking invitees"""
        try:
            result = self.supabase.table("profiles")\
                .select("id, username")\
                .neq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing invitable users: {e}")
            raise BackendError("Could not load users", cause=e)

        return [parse_invitable_user(row) for row in result.data or []]
