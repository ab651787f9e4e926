"""
Create-Click workflow.

A click and its first admin membership are written as two sequential inserts.
PostgREST offers no transaction spanning both, so the workflow runs them as a
small saga:

1. validate the request (no writes before this passes)
2. insert the click row, or reuse the row created by an earlier attempt with
   the same ``request_id``
3. insert the caller's admin membership; if that fails, delete the click again
   (when compensation is enabled) so no click is left without an admin
4. insert memberships for the invitees in one batch; a failure here leaves the
   click and its admin in place

Every terminal path produces exactly one notification. Errors never escape
``run``; they are turned into a ``ClickCreationResult``.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from clicks_backend.config.settings import settings
from clicks_backend.core.exceptions import (
    ClickCreationFailed,
    PartialFailure,
    Unauthenticated,
    ValidationError,
)
from clicks_backend.core.notifications import Notifier
from clicks_backend.core.session import UserSession
from clicks_backend.modules.clicks.schemas import (
    ClickCreate,
    ClickCreationResult,
    ClickResponse,
)

logger = logging.getLogger(__name__)


def parse_click(row: Dict[str, Any]) -> ClickResponse:
    try:
        return ClickResponse.model_validate(row)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)


class ClickCreationWorkflow:
    def __init__(
        self,
        supabase: Client,
        notifier: Notifier,
        admin_supabase: Optional[Client] = None,
        compensate: Optional[bool] = None,
    ):
        self.supabase = supabase
        self.notifier = notifier
        # Deleting a click with no admin needs to bypass RLS
        self.admin_supabase = admin_supabase or supabase
        self.compensate = settings.compensate_orphaned_clicks if compensate is None else compensate

    def run(self, payload: Any, session: Optional[UserSession]) -> ClickCreationResult:
        try:
            click = self.create(payload, session)
        except Unauthenticated:
            notification = self.notifier.notify(
                "Error", "You must be logged in to create a Click.", destructive=True
            )
            return ClickCreationResult(status="unauthenticated", notification=notification)
        except ValidationError as e:
            notification = self.notifier.notify(
                "Invalid input",
                "; ".join(err["message"] for err in e.errors),
                destructive=True,
            )
            return ClickCreationResult(
                status="validation_error", errors=e.errors, notification=notification
            )
        except ClickCreationFailed:
            notification = self.notifier.notify(
                "Error", "There was an error creating your Click.", destructive=True
            )
            return ClickCreationResult(status="creation_failed", notification=notification)
        except PartialFailure as e:
            notification = self.notifier.notify("Partially created", e.message, destructive=True)
            return ClickCreationResult(
                status="partial_failure",
                click=e.click,
                compensated=e.compensated,
                notification=notification,
            )

        notification = self.notifier.notify(
            "Click created!", "Your new Click has been created successfully."
        )
        return ClickCreationResult(status="success", click=click, notification=notification)

    def create(self, payload: Any, session: Optional[UserSession]) -> ClickResponse:
        """Run every step, raising the domain error of the first one that fails."""
        if session is None or not session.id:
            raise Unauthenticated()
        caller_id = session.id
        data = self.validate(payload)

        existing = self._find_previous_attempt(data, caller_id)
        if existing is not None:
            logger.info(f"Resuming click creation for request {data.request_id} (click {existing.id})")
            click = existing
        else:
            click = self._insert_click(data, caller_id)

        self._ensure_admin(click, caller_id, resuming=existing is not None)

        invitees = data.invitees_for(caller_id)
        if existing is not None and invitees:
            invitees = self._drop_existing_members(click, invitees)
        if invitees:
            self._insert_invitees(click, invitees)
        return click

    def validate(self, payload: Any) -> ClickCreate:
        if not isinstance(payload, dict):
            raise ValidationError([{"field": "body", "message": "Request body must be a JSON object"}])
        try:
            return ClickCreate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e)

    def _find_previous_attempt(self, data: ClickCreate, caller_id: str) -> Optional[ClickResponse]:
        if not data.request_id:
            return None
        try:
            result = self.supabase.table("clicks")\
                .select("*")\
                .eq("created_by", caller_id)\
                .eq("request_id", data.request_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to look up click for request {data.request_id}: {e}")
            raise ClickCreationFailed("Could not check for an earlier attempt", cause=e)
        if not result.data:
            return None
        try:
            return parse_click(result.data[0])
        except ValidationError as e:
            raise ClickCreationFailed("Earlier attempt returned an unreadable row", cause=e)

    def _insert_click(self, data: ClickCreate, caller_id: str) -> ClickResponse:
        schedule = data.schedule
        row = {
            "name": data.name,
            "description": data.description,
            "schedule_frequency": schedule.frequency if schedule else None,
            "schedule_day": schedule.day if schedule else None,
            "schedule_time": schedule.time if schedule else None,
            "created_by": caller_id,
            "request_id": data.request_id,
        }
        try:
            result = self.supabase.table("clicks").insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to insert click: {e}")
            raise ClickCreationFailed("Failed to create click", cause=e)

        rows = result.data or []
        if len(rows) != 1:
            logger.error(f"Click insert returned {len(rows)} rows, expected 1")
            raise ClickCreationFailed("Click insert did not return the created row")
        try:
            return parse_click(rows[0])
        except ValidationError as e:
            raise ClickCreationFailed("Click insert returned an unreadable row", cause=e)

    def _ensure_admin(self, click: ClickResponse, caller_id: str, resuming: bool) -> None:
        if resuming and self._is_admin(click, caller_id):
            return
        try:
            self.supabase.table("click_members").insert({
                "click_id": click.id,
                "user_id": caller_id,
                "role": "admin"
            }).execute()
        except Exception as e:
            logger.error(f"Failed to add creator as admin of click {click.id}: {e}")
            raise self._orphaned(click, e)

    def _is_admin(self, click: ClickResponse, user_id: str) -> bool:
        try:
            result = self.supabase.table("click_members")\
                .select("role")\
                .eq("click_id", click.id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to read membership of click {click.id}: {e}")
            raise PartialFailure(
                "Your Click exists but its members could not be checked. Please try again.",
                click=click,
                cause=e,
            )
        return any(r.get("role") == "admin" for r in result.data or [])

    def _orphaned(self, click: ClickResponse, cause: Exception) -> PartialFailure:
        if self.compensate:
            try:
                result = self.admin_supabase.table("clicks")\
                    .delete()\
                    .eq("id", click.id)\
                    .eq("created_by", click.created_by)\
                    .execute()
            except Exception as e:
                logger.error(f"Failed to delete orphaned click {click.id}: {e}")
            else:
                # RLS filters a delete silently; no rows back means the click is still there
                if result.data:
                    logger.warning(f"Deleted click {click.id} after its admin membership failed")
                    return PartialFailure(
                        "Your Click could not be set up and was removed. Please try again.",
                        click=None,
                        compensated=True,
                        cause=cause,
                    )
                logger.error(f"Delete of orphaned click {click.id} removed no rows")
        return PartialFailure(
            "Your Click was created but you could not be added as its admin. "
            "It needs to be fixed manually.",
            click=click,
            compensated=False,
            cause=cause,
        )

    def _drop_existing_members(self, click: ClickResponse, invitees: List[str]) -> List[str]:
        try:
            result = self.supabase.table("click_members")\
                .select("user_id")\
                .eq("click_id", click.id)\
                .in_("user_id", invitees)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to read members of click {click.id}: {e}")
            raise PartialFailure(
                "Your Click was created but some members could not be invited.",
                click=click,
                cause=e,
            )
        present = {r["user_id"] for r in result.data or []}
        return [user_id for user_id in invitees if user_id not in present]

    def _insert_invitees(self, click: ClickResponse, invitees: List[str]) -> None:
        try:
            self.supabase.table("click_members").insert([
                {"click_id": click.id, "user_id": user_id, "role": "member"}
                for user_id in invitees
            ]).execute()
        except Exception as e:
            logger.error(f"Failed to invite {len(invitees)} members to click {click.id}: {e}")
            raise PartialFailure(
                "Your Click was created but some members could not be invited.",
                click=click,
                cause=e,
            )
