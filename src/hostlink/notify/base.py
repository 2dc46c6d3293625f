"""Abstract base classes for notification delivery.

Two delivery paths exist: the desktop's own notification service, and a
host-drawn overlay used when the system path is refused or explicitly
requested.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from hostlink.domain.models import NotificationPriority

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Delivers notifications through the system notification service."""

    @abstractmethod
    async def send(
        self,
        title: str,
        body: str,
        sound: str | None = None,
        priority: NotificationPriority | None = None,
    ) -> bool:
        """Post a notification.

        Returns:
            True if the notification service accepted it, False if it
            refused (for example because notifications are not authorized).
        """
        ...


class OverlayPresenter(ABC):
    """Presents a notification without going through the system service."""

    @abstractmethod
    async def present(self, title: str, body: str) -> None:
        ...
