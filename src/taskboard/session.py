"""Session holder: the bearer credential and the identity decoded from it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import jwt
from loguru import logger

from .errors import AuthError
from .models import User


@dataclass(frozen=True)
class Identity:
    """Who the credential belongs to."""

    subject: str
    email: str = ""


def decode_identity(token: str, user: Optional[User] = None) -> Identity:
    """Read ``sub``/``email`` claims from *token* without verifying the signature.

    The signature is the server's business; the client only needs the claims
    for display.  When the server also returned a *user*, it fills any claim
    the token lacks.

    Raises:
        AuthError: if the token is not a decodable JWT or names no subject.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as exc:
        raise AuthError(f"Invalid credential: {exc}") from exc

    subject = str(claims.get("sub") or (user.id if user else "") or "")
    email = str(claims.get("email") or (user.email if user else "") or "")
    if not subject:
        raise AuthError("Invalid credential: no subject")
    return Identity(subject=subject, email=email)


class Session:
    """Current credential plus derived identity.

    Credential and identity always change together.  Ending the session
    notifies every listener registered with :meth:`on_end` so cached board
    state can be discarded.
    """

    def __init__(self) -> None:
        self._token: Optional[str] = None
        self._identity: Optional[Identity] = None
        self._end_listeners: list[Callable[[], None]] = []

    @property
    def credential(self) -> Optional[str]:
        return self._token

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def on_end(self, callback: Callable[[], None]) -> None:
        self._end_listeners.append(callback)

    def set_credential(self, token: str, user: Optional[User] = None) -> Identity:
        """Replace the credential and identity atomically.

        On a bad token the previous session is left untouched.
        """
        identity = decode_identity(token, user)
        previous = self._identity
        if previous is not None and previous.subject != identity.subject:
            # A different user signs in over a live session: drop their data.
            self._notify_end()
        self._token = token
        self._identity = identity
        logger.info("Signed in as {}", identity.email or identity.subject)
        return identity

    def clear(self) -> None:
        """End the session."""
        was_active = self._token is not None
        self._token = None
        self._identity = None
        if was_active:
            logger.info("Session ended")
            self._notify_end()

    def auth_headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def _notify_end(self) -> None:
        for callback in list(self._end_listeners):
            callback()
