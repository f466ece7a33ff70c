"""Caller identity resolved once per request by the auth middleware."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling: an identity-provider user or an anonymous browser session.

    ``anonymous_id`` is only meaningful for unauthenticated callers; a signed-in
    caller keeps the cookie but never acts through it.
    """

    auth_user_id: str | None = None
    email: str | None = None
    anonymous_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.auth_user_id is not None

    def __post_init__(self):
        if self.auth_user_id is not None and not self.auth_user_id.strip():
            raise ValueError("auth_user_id must not be blank")
