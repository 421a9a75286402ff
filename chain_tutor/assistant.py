"""Conversational assistant: turns user utterances into grounded Gemini replies."""
from __future__ import annotations

import time
import uuid
from typing import Callable, List, Optional

from .attachments import AttachmentStager
from .clients import CredentialSlot
from .context import AIContext
from .errors import ChainTutorError, ErrorKind
from .interpreter import build_chat_request, compose_reply, extract_citations, response_text
from .logging import get_logger
from .notifications import NotificationCenter
from .prompts import (
    API_KEY_MISSING_MESSAGE,
    ATTACHMENT_PREFIX,
    AUTHOR_ATTRIBUTION,
    CHAT_ERROR_TEMPLATE,
    CHAT_NOT_READY_NOTICE,
    LEARNING_PATHS,
    PENDING_REPLY_TEXT,
    SYSTEM_INSTRUCTIONS,
    WELCOME_MESSAGE,
    LearningPath,
)
from .resilience import Cooldown, classify_error
from .types import ConversationMessage

logger = get_logger(__name__)


class ChatAssistant:
    """Owns one conversation against the system credential."""

    slot = CredentialSlot.SYSTEM

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
        self.messages: List[ConversationMessage] = []
        self.attachments = AttachmentStager(notifier, max_mb=context.settings.max_attachment_mb)
        self.cooldown = Cooldown(context.settings.rate_limit_cooldown_seconds, clock=clock)
        self.is_loading = False

    @property
    def learning_paths(self) -> List[LearningPath]:
        return LEARNING_PATHS

    @property
    def is_ready(self) -> bool:
        return self.context.provider.is_ready(self.slot)

    @property
    def can_send(self) -> bool:
        """UI gate. send() itself does not consult the cooldown."""
        return self.is_ready and not self.is_loading and not self.cooldown.is_active()

    def start(self) -> None:
        """Seed the transcript with a greeting, once."""
        if self.messages:
            return
        body = WELCOME_MESSAGE if self.is_ready else API_KEY_MISSING_MESSAGE
        error = None if self.is_ready else "API Key missing"
        self._append("assistant", body, error_detail=error)

    def send(self, prompt_text: str) -> Optional[ConversationMessage]:
        """Run one turn. Returns the resolved reply, or None when nothing was sent."""
        text = prompt_text.strip()
        if (not text and self.attachments.staged is None) or self.is_loading:
            return None

        try:
            handle = self.context.provider.require_client(self.slot)
        except ChainTutorError:
            self.notifier.notify(CHAT_NOT_READY_NOTICE, "error")
            if not self.messages or self.messages[-1].body != API_KEY_MISSING_MESSAGE:
                self._append("assistant", API_KEY_MISSING_MESSAGE, error_detail="API Key missing")
            return None

        attachment = self.attachments.consume()
        prefix = ATTACHMENT_PREFIX.format(name=attachment.source_file) if attachment else ""
        self._append("user", f"{prefix}{text}")
        pending = self._append("assistant", PENDING_REPLY_TEXT, is_pending=True)

        self.is_loading = True
        try:
            contents, config, use_search = build_chat_request(
                text,
                attachment,
                SYSTEM_INSTRUCTIONS,
                temperature=self.context.settings.gemini_temperature,
            )
            response = handle.generate_content(contents, config)
            citations = extract_citations(response) if use_search else None
            resolved = ConversationMessage(
                id=pending.id,
                author="assistant",
                body=compose_reply(response_text(response), citations),
                citations=citations,
            )
        except Exception as exc:
            logger.exception("Gemini chat request failed")
            classified = classify_error(exc)
            if classified.kind is ErrorKind.RATE_LIMITED:
                self.cooldown.trigger()
            body = CHAT_ERROR_TEMPLATE.format(detail=classified.user_message()) + AUTHOR_ATTRIBUTION
            self.notifier.notify(body, "error", duration_ms=5000)
            resolved = ConversationMessage(
                id=pending.id,
                author="assistant",
                body=body,
                error_detail=classified.detail or classified.kind.value,
            )
        finally:
            self.is_loading = False

        self._replace(pending.id, resolved)
        return resolved

    def reset(self) -> None:
        self.messages = []
        self.attachments.clear()

    def _append(
        self,
        author: str,
        body: str,
        is_pending: bool = False,
        error_detail: Optional[str] = None,
    ) -> ConversationMessage:
        message = ConversationMessage(
            id=self._id_factory(),
            author=author,  # type: ignore[arg-type]
            body=body,
            is_pending=is_pending,
            error_detail=error_detail,
        )
        self.messages.append(message)
        return message

    def _replace(self, message_id: str, message: ConversationMessage) -> None:
        self.messages = [message if item.id == message_id else item for item in self.messages]
