"""Explicit holder for clients, credentials and settings shared by the UIs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .clients import ClientFactory, ClientHandle, ClientProvider, CredentialSlot
from .config import Settings
from .credential_store import CredentialStore
from .errors import ChainTutorError, CredentialMissing
from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class AIContext:
    settings: Settings
    provider: ClientProvider
    credential_store: CredentialStore

    @classmethod
    def build(cls, settings: Settings, client_factory: Optional[ClientFactory] = None) -> "AIContext":
        """Create the context and initialize both slots from their sources."""
        context = cls(
            settings=settings,
            provider=ClientProvider(settings.gemini_model_name, client_factory=client_factory),
            credential_store=CredentialStore(settings.user_credential_path),
        )
        context.init_system_client()
        stored_key = context.credential_store.load()
        if stored_key:
            context.init_user_client(stored_key)
        return context

    def init_system_client(self) -> Optional[ClientHandle]:
        try:
            return self.provider.obtain_client(CredentialSlot.SYSTEM, self.settings.system_api_key)
        except ChainTutorError as exc:
            logger.warning("System client unavailable", extra={"kind": exc.kind.value})
            return None

    def init_user_client(self, credential: str) -> Optional[ClientHandle]:
        try:
            return self.provider.obtain_client(CredentialSlot.USER, credential)
        except ChainTutorError as exc:
            logger.warning("User client unavailable", extra={"kind": exc.kind.value})
            return None

    @property
    def stored_user_key(self) -> Optional[str]:
        return self.credential_store.load()

    def save_user_key(self, credential: str) -> ClientHandle:
        """Persist the key, then build its client. Raises on an unusable key."""
        if not credential.strip():
            raise CredentialMissing("API key must not be blank.")
        self.credential_store.save(credential)
        return self.provider.obtain_client(CredentialSlot.USER, credential)

    def clear_user_key(self) -> None:
        self.credential_store.clear()
        self.provider.reset(CredentialSlot.USER)
