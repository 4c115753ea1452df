"""Push message to system notification mapping.

Dormant: nothing in the service sends pushes yet.
"""

from pydantic import BaseModel

DEFAULT_ICON = "/vite.svg"


class Notification(BaseModel):
    title: str
    body: str = ""
    icon: str = DEFAULT_ICON


def notification_from_push(payload: dict) -> Notification:
    """Read title and body from a push payload."""
    title = payload.get("title")
    if not title:
        raise ValueError("Push payload has no title")
    return Notification(title=str(title), body=str(payload.get("body") or ""))
