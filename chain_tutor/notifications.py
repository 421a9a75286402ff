"""Fire-and-forget user notices, mirrored to the log."""
from __future__ import annotations

import logging
import uuid
from typing import Callable, List, Optional

from .logging import get_logger
from .types import Notification, NotificationType

logger = get_logger(__name__)

_LOG_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class NotificationCenter:
    """Collects notices until the UI drains them."""

    def __init__(self, default_duration_ms: int = 3000, id_factory: Optional[Callable[[], str]] = None) -> None:
        self.default_duration_ms = default_duration_ms
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self.pending: List[Notification] = []

    def notify(self, message: str, type: NotificationType = "info", duration_ms: Optional[int] = None) -> Notification:
        notification = Notification(
            id=self._id_factory(),
            message=message,
            type=type,
            duration_ms=duration_ms if duration_ms is not None else self.default_duration_ms,
        )
        self.pending.append(notification)
        logger.log(_LOG_LEVELS.get(type, logging.INFO), message, extra={"notification_type": type})
        return notification

    def drain(self) -> List[Notification]:
        drained, self.pending = self.pending, []
        return drained
