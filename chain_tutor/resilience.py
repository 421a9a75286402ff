"""Error classification and rate-limit cooldown for provider calls."""
from __future__ import annotations

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from .errors import ChainTutorError, ErrorKind

RATE_LIMIT_MARKERS = ("quota", "RESOURCE_EXHAUSTED")
INVALID_KEY_MARKERS = ("api key not valid", "invalid api key")

_MESSAGE_TEMPLATES: Dict[ErrorKind, str] = {
    ErrorKind.CLIENT_INITIALIZATION: "Lỗi khởi tạo API Key {owner}: {detail}. Key có thể không hợp lệ.",
    ErrorKind.CREDENTIAL_MISSING: "API Key {owner} chưa được cấu hình.",
    ErrorKind.RATE_LIMITED: "Lỗi: Đã vượt quá giới hạn yêu cầu API Key {owner}. Thử lại sau 1 phút.",
    ErrorKind.INVALID_CREDENTIAL: "Lỗi: API Key {owner} không hợp lệ.",
    ErrorKind.EMPTY_PAYLOAD: "Dữ liệu AI trả về trống sau khi xử lý markdown.",
    ErrorKind.MALFORMED_JSON: "Lỗi xử lý dữ liệu từ AI (JSON không hợp lệ, API {owner}).",
    ErrorKind.SHAPE: "Dữ liệu cảnh báo AI trả về không phải mảng JSON các đối tượng.",
    ErrorKind.UNKNOWN: "Lỗi từ dịch vụ AI (API {owner}): {detail}.",
}


@dataclass(frozen=True)
class ClassifiedError:
    """Displayable error state derived from a caught exception."""

    kind: ErrorKind
    detail: str

    def user_message(self, owner: str = "hệ thống") -> str:
        template = _MESSAGE_TEMPLATES[self.kind]
        return template.format(owner=owner, detail=self.detail or "Unknown error")


def _status_code(error: BaseException) -> Optional[int]:
    """Extract HTTP-like status code from Gemini SDK errors."""
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    code = getattr(error, "code", None)
    if isinstance(code, int):
        return code
    return None


def _is_rate_limited(error: BaseException, message: str) -> bool:
    if _status_code(error) == 429:
        return True
    if getattr(error, "status", None) == "RESOURCE_EXHAUSTED":
        return True
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def classify_error(error: BaseException) -> ClassifiedError:
    """Map a caught exception to exactly one ErrorKind. Never raises."""
    message = str(error)
    if _is_rate_limited(error, message):
        return ClassifiedError(ErrorKind.RATE_LIMITED, message)

    lowered = message.lower()
    if any(marker in lowered for marker in INVALID_KEY_MARKERS):
        return ClassifiedError(ErrorKind.INVALID_CREDENTIAL, message)

    if isinstance(error, json.JSONDecodeError):
        return ClassifiedError(ErrorKind.MALFORMED_JSON, message)

    if isinstance(error, ChainTutorError):
        return ClassifiedError(error.kind, message)

    return ClassifiedError(ErrorKind.UNKNOWN, message)


class CooldownPhase(str, Enum):
    IDLE = "idle"
    COOLDOWN = "cooldown"


class Cooldown:
    """Advisory retry gate: IDLE, or COOLDOWN until a monotonic deadline."""

    def __init__(self, duration_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.duration_seconds = duration_seconds
        self._clock = clock
        self.expires_at: Optional[float] = None

    @property
    def phase(self) -> CooldownPhase:
        if self.expires_at is not None and self._clock() >= self.expires_at:
            self.expires_at = None
        return CooldownPhase.IDLE if self.expires_at is None else CooldownPhase.COOLDOWN

    def trigger(self) -> None:
        self.expires_at = self._clock() + self.duration_seconds

    def is_active(self) -> bool:
        return self.phase is CooldownPhase.COOLDOWN

    def remaining(self) -> float:
        """Seconds left in the cooldown, 0.0 when idle."""
        if not self.is_active() or self.expires_at is None:
            return 0.0
        return max(0.0, self.expires_at - self._clock())

    def clear(self) -> None:
        self.expires_at = None
