from pydantic import BaseModel
from typing import List, Literal, Optional
import logging

logger = logging.getLogger(__name__)


class Notification(BaseModel):
    variant: Literal["default", "destructive"] = "default"
    title: str
    description: str


class Notifier:
    """Collects the user-facing notifications emitted while handling one request."""

    def __init__(self):
        self.sent: List[Notification] = []

    def notify(self, title: str, description: str, destructive: bool = False) -> Notification:
        notification = Notification(
            variant="destructive" if destructive else "default",
            title=title,
            description=description,
        )
        self.sent.append(notification)
        logger.debug(f"Notification [{notification.variant}] {title}: {description}")
        return notification

    @property
    def last(self) -> Optional[Notification]:
        return self.sent[-1] if self.sent else None


def get_notifier() -> Notifier:
    return Notifier()
