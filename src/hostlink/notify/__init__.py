"""Notification delivery for hostlink.

Public API:
    Notifier -- System notification contract
    OverlayPresenter -- Overlay fallback contract
    DesktopNotifier -- ``notify-send`` implementation
    LogOverlayPresenter -- Logging overlay
"""

from hostlink.notify.base import Notifier, OverlayPresenter
from hostlink.notify.desktop import DesktopNotifier, LogOverlayPresenter

__all__ = ["DesktopNotifier", "LogOverlayPresenter", "Notifier", "OverlayPresenter"]
