"""
Authentication Session Schema.

Read-only snapshot of the authentication provider's state. The notebook
never mutates it; a sign-in or sign-out produces a new session.
"""

from pydantic import BaseModel, ConfigDict


class AuthSession(BaseModel):
    """Who is using the notebook."""

    user_id: str | None = None
    is_guest_mode: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_guest(self) -> bool:
        """Guest mode only counts when nobody is signed in."""
        return self.is_guest_mode and not self.is_authenticated

    @classmethod
    def anonymous(cls) -> "AuthSession":
        return cls()

    @classmethod
    def guest(cls) -> "AuthSession":
        return cls(is_guest_mode=True)

    @classmethod
    def signed_in(cls, user_id: str) -> "AuthSession":
        return cls(user_id=user_id)
