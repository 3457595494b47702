"""Explicit user session context.

Authentication itself is delegated to the hosted backend. Once a user has
signed in, the client builds a Session value and passes it to every workflow
call; there is no ambient "current user".

UserSession ties the lifecycle together: start() opens the user's single
realtime notification subscription, end() (sign-out) closes it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from venturenest.errors import ValidationFailure
from venturenest.timeutil import utc_now

if TYPE_CHECKING:
    from venturenest.models.notification import Notification
    from venturenest.realtime import Subscription
    from venturenest.services.notifications.service import NotificationService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Signed-in user identity passed to workflow calls.

    Attributes:
        user_id: Identity of the signed-in user.
        access_token: Bearer token issued by the auth backend (never logged).
        email: Optional email of the user.
        started_at: When the session was created.
    """

    user_id: str
    access_token: str | None = field(default=None, repr=False)
    email: str | None = None
    started_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.user_id or not self.user_id.strip():
            raise ValidationFailure("Session requires a user_id")


class UserSession:
    """Lifecycle owner for one signed-in user.

    Usage:
        with UserSession(Session(user_id), notifications, on_notification) as active:
            ...
    """

    def __init__(
        self,
        session: Session,
        notifications: NotificationService,
        on_notification: Callable[[Notification], None],
    ) -> None:
        self._session = session
        self._notifications = notifications
        self._on_notification = on_notification
        self._subscription: Subscription | None = None

    @property
    def session(self) -> Session:
        """Return the session value."""
        return self._session

    @property
    def active(self) -> bool:
        """Return True while the notification subscription is open."""
        return self._subscription is not None and not self._subscription.closed

    def start(self) -> UserSession:
        """Open the notification subscription. Calling twice is a no-op."""
        if self.active:
            return self
        self._subscription = self._notifications.subscribe(
            self._session.user_id, self._on_notification
        )
        logger.info("Session started for user %s", self._session.user_id)
        return self

    def end(self) -> None:
        """Close the notification subscription (sign-out). Safe to call repeatedly."""
        if self._subscription is None:
            return
        self._subscription.close()
        self._subscription = None
        logger.info("Session ended for user %s", self._session.user_id)

    def __enter__(self) -> UserSession:
        return self.start()

    def __exit__(self, *exc: object) -> None:
        self.end()
