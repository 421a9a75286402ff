"""Shared type declarations for conversation, alert and notification state."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional, TypedDict

Author = Literal["user", "assistant"]
NotificationType = Literal["success", "error", "info", "warning"]


@dataclass(frozen=True)
class Citation:
    """Web source backing a grounded answer."""

    uri: str
    title: str


@dataclass
class ConversationMessage:
    """Single chat transcript item."""

    id: str
    author: Author
    body: str
    created_at: datetime = field(default_factory=datetime.now)
    is_pending: bool = False
    error_detail: Optional[str] = None
    citations: Optional[List[Citation]] = None


@dataclass(frozen=True)
class Attachment:
    """A file staged for the next outgoing message, already base64-encoded."""

    source_file: str
    mime_type: str
    size_bytes: int
    base64_payload: str


class AlertItemPayload(TypedDict, total=False):
    """Alert object as the model is asked to emit it."""

    tieuDeCanhBao: str
    moTaChiTiet: str
    dauHieuNhanBiet: List[str]
    cachPhongTranh: List[str]
    ngayCapNhat: str
    urlNguonCanhBao: str


@dataclass
class AlertRecord:
    """Scam alert published to the feed."""

    id: str
    title: str
    description: str
    indicators: List[str]
    mitigations: List[str]
    last_updated: str
    source_url: Optional[str] = None
    citations: Optional[List[Citation]] = None


@dataclass
class Notification:
    """Transient display-only notice."""

    id: str
    message: str
    type: NotificationType
    duration_ms: int
