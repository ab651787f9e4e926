"""
Edit-mode state machine for a profile.

    viewing --begin_edit--> editing --submit--> saving --ok--> viewing
                  ^            |                   |
                  +--cancel----+                   +--error--> editing

The editor only leaves ``saving`` once the write has returned, so a profile
is never shown as saved while the request is still in flight.
"""

from enum import Enum
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from clicks_backend.core.exceptions import InvalidTransition, ValidationError
from clicks_backend.modules.profiles.schemas import ProfileForm, ProfileResponse


class EditorState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    SAVING = "saving"


class ProfileEditor:
    def __init__(self, profile: ProfileResponse):
        self.profile = profile
        self.state = EditorState.VIEWING
        self.draft: Optional[ProfileForm] = None

    def _require(self, state: EditorState, action: str) -> None:
        if self.state != state:
            raise InvalidTransition(f"Cannot {action} while {self.state.value}")

    def begin_edit(self) -> ProfileForm:
        self._require(EditorState.VIEWING, "start editing")
        self.draft = ProfileForm.from_profile(self.profile)
        self.state = EditorState.EDITING
        return self.draft

    def cancel(self) -> None:
        self._require(EditorState.EDITING, "cancel")
        self.draft = None
        self.state = EditorState.VIEWING

    def submit(
        self,
        payload: Dict[str, Any],
        save: Callable[[ProfileForm], ProfileResponse],
    ) -> ProfileResponse:
        """Validate the whole form and save it.

        Invalid input keeps the editor in ``editing`` without calling ``save``.
        A failed save returns it to ``editing`` and re-raises.
        """
        self._require(EditorState.EDITING, "submit")
        try:
            form = ProfileForm.model_validate(payload or {})
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e)

        self.draft = form
        self.state = EditorState.SAVING
        try:
            updated = save(form)
        except Exception:
            self.state = EditorState.EDITING
            raise
        self.profile = updated
        self.draft = None
        self.state = EditorState.VIEWING
        return updated
