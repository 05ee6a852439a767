"""Authenticated account as reported by the session provider."""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

GUEST_DISPLAY_NAME = "Guest Player"
GUEST_EMAIL_LABEL = "Not logged in"


def avatar_url_for(name: str, background: str = "8b5cf6") -> str:
    return f"https://ui-avatars.com/api/?name={quote(name)}&background={background}&color=fff&size=200"


GUEST_AVATAR_URL = avatar_url_for("Guest", background="6b7280")


@dataclass(frozen=True)
class SessionIdentity:
    account_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.display_name or "Player"

    @property
    def email_label(self) -> str:
        return self.email or "Anonymous"

    @property
    def avatar_url(self) -> str:
        return self.photo_url or avatar_url_for(self.display_label)
