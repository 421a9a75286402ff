"""Scam-alert feed fetched as structured JSON from Gemini."""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .clients import CredentialSlot, SlotStatus
from .context import AIContext
from .errors import ChainTutorError, ErrorKind
from .interpreter import build_alerts_request, extract_citations, parse_alert_records, response_text
from .logging import get_logger
from .notifications import NotificationCenter
from .prompts import ALERTS_PROMPT, slot_owner_label
from .resilience import Cooldown, classify_error
from .types import AlertRecord

logger = get_logger(__name__)


@dataclass
class FetchSlotState:
    """UI-facing state of one credential slot's fetch button."""

    cooldown: Cooldown
    is_loading: bool = False
    error: Optional[str] = None
    status_message: str = ""
    has_fetched_once: bool = False


def _not_ready_message(slot: CredentialSlot) -> str:
    if slot is CredentialSlot.SYSTEM:
        return "API hệ thống chưa sẵn sàng. Kiểm tra biến môi trường API_KEY."
    return "API Key của bạn chưa sẵn sàng hoặc không hợp lệ."


class AlertFeed:
    """Fetches and publishes scam alerts through either credential slot."""

    def __init__(
        self,
        context: AIContext,
        notifier: NotificationCenter,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.context = context
        self.notifier = notifier
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self.alerts: List[AlertRecord] = []
        cooldown_seconds = context.settings.rate_limit_cooldown_seconds
        self.slots: Dict[CredentialSlot, FetchSlotState] = {
            slot: FetchSlotState(cooldown=Cooldown(cooldown_seconds, clock=clock)) for slot in CredentialSlot
        }
        self._sync_initial_status()

    def _sync_initial_status(self) -> None:
        provider = self.context.provider
        system = self.slots[CredentialSlot.SYSTEM]
        if provider.is_ready(CredentialSlot.SYSTEM):
            system.status_message = "API hệ thống sẵn sàng tải cảnh báo."
        else:
            system.error = self._slot_error_message(CredentialSlot.SYSTEM)
            system.status_message = system.error
            missing = provider.status(CredentialSlot.SYSTEM) is SlotStatus.MISSING
            self.notifier.notify(system.error, "error", 7000 if missing else None)

        user = self.slots[CredentialSlot.USER]
        if provider.is_ready(CredentialSlot.USER):
            user.status_message = "API Key của bạn hợp lệ và đã sẵn sàng."
        elif provider.last_error(CredentialSlot.USER) is not None:
            user.error = self._slot_error_message(CredentialSlot.USER)
            user.status_message = user.error
        else:
            user.status_message = "Bạn có thể nhập API Key Gemini cá nhân để sử dụng."

    def _slot_error_message(self, slot: CredentialSlot) -> str:
        error = self.context.provider.last_error(slot)
        if error is None:
            return _not_ready_message(slot)
        return classify_error(error).user_message(slot_owner_label(slot.value))

    def can_fetch(self, slot: CredentialSlot) -> bool:
        state = self.slots[slot]
        return self.context.provider.is_ready(slot) and not state.is_loading and not state.cooldown.is_active()

    def button_label(self, slot: CredentialSlot) -> str:
        state = self.slots[slot]
        if state.is_loading:
            return "Đang tải..."
        if state.cooldown.is_active():
            return "Thử lại sau..."
        if slot is CredentialSlot.SYSTEM:
            return "Làm Mới Cảnh Báo (Hệ Thống)" if state.has_fetched_once else "Tải Cảnh Báo (Hệ Thống)"
        return "Làm Mới Cảnh Báo (Key Của Bạn)" if state.has_fetched_once else "Tải Bằng Key Của Bạn"

    def fetch(self, slot: CredentialSlot) -> bool:
        """Fetch a fresh alert list. Returns True when the list was replaced."""
        state = self.slots[slot]
        if state.is_loading:
            return False

        owner = slot_owner_label(slot.value)
        try:
            handle = self.context.provider.require_client(slot)
        except ChainTutorError:
            state.error = _not_ready_message(slot)
            self.notifier.notify(state.error, "error")
            return False

        state.is_loading = True
        state.error = None
        state.status_message = f"Đang tải cảnh báo (API {owner})..."
        try:
            contents, config = build_alerts_request(ALERTS_PROMPT)
            response = handle.generate_content(contents, config)
            records = parse_alert_records(
                response_text(response),
                citations=extract_citations(response),
                id_factory=self._id_factory,
            )
        except Exception as exc:
            classified = classify_error(exc)
            logger.warning(
                "Alert fetch failed",
                extra={"slot": slot.value, "kind": classified.kind.value, "detail": classified.detail},
            )
            if classified.kind is ErrorKind.RATE_LIMITED:
                state.cooldown.trigger()
            state.error = classified.user_message(owner)
            state.status_message = state.error
            self.notifier.notify(state.error, "error", duration_ms=5000)
            return False
        finally:
            state.is_loading = False

        self.alerts = records
        state.has_fetched_once = True
        if records:
            self.notifier.notify(f"Đã tải cảnh báo mới nhất (API {owner})!", "success", duration_ms=2000)
            state.status_message = f"Cảnh báo đã được cập nhật (API {owner})."
        else:
            self.notifier.notify("Không có cảnh báo mới nào được tìm thấy.", "info", duration_ms=2000)
            state.status_message = f"Không có cảnh báo mới (API {owner})."
        return True

    def save_user_key(self, credential: str) -> bool:
        """Persist and validate a user key. Returns True when its client is ready."""
        state = self.slots[CredentialSlot.USER]
        if not credential.strip():
            self.notifier.notify("Vui lòng nhập API Key.", "error")
            state.status_message = "API Key không được để trống."
            return False
        try:
            self.context.save_user_key(credential.strip())
        except ChainTutorError as exc:
            state.error = classify_error(exc).user_message(slot_owner_label(CredentialSlot.USER.value))
            state.status_message = state.error
            self.notifier.notify(state.error, "error")
            return False
        state.error = None
        state.status_message = "API Key của bạn hợp lệ và đã sẵn sàng."
        self.notifier.notify("API Key của bạn đã được xác thực thành công!", "success")
        return True

    def clear_user_key(self) -> None:
        self.context.clear_user_key()
        self.slots[CredentialSlot.USER] = FetchSlotState(cooldown=self.slots[CredentialSlot.USER].cooldown)
        self.slots[CredentialSlot.USER].status_message = "API Key của bạn đã được xóa. Bạn có thể nhập key mới."
        self.notifier.notify("Đã xóa API Key cá nhân.", "info")
