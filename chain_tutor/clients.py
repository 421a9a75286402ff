"""Gemini client lifecycle: one live client per credential slot."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from google import genai
from google.genai import types as genai_types

from .errors import ChainTutorError, ClientInitializationError, CredentialMissing
from .logging import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[str], Any]


class CredentialSlot(str, Enum):
    SYSTEM = "system"
    USER = "user"


class SlotStatus(str, Enum):
    MISSING = "missing"
    READY = "ready"
    FAILED = "failed"


def default_client_factory(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


@dataclass
class ClientHandle:
    """A constructed SDK client bound to one slot's credential."""

    slot: CredentialSlot
    client: Any = field(repr=False)
    model_name: str
    credential: str = field(repr=False)

    def generate_content(
        self,
        contents: Union[str, List[genai_types.Content]],
        config: Optional[genai_types.GenerateContentConfig] = None,
    ) -> Any:
        return self.client.models.generate_content(
            model=self.model_name,
            contents=contents,
            config=config,
        )


@dataclass
class _SlotState:
    status: SlotStatus = SlotStatus.MISSING
    handle: Optional[ClientHandle] = None
    error: Optional[ChainTutorError] = None


class ClientProvider:
    """Builds and holds at most one client handle per credential slot."""

    def __init__(self, model_name: str, client_factory: Optional[ClientFactory] = None) -> None:
        self.model_name = model_name
        self.client_factory = client_factory or default_client_factory
        self._slots: Dict[CredentialSlot, _SlotState] = {slot: _SlotState() for slot in CredentialSlot}

    def obtain_client(self, slot: CredentialSlot, credential: str) -> ClientHandle:
        """Construct a client for the slot, replacing whatever it held.

        Raises CredentialMissing for a blank credential and
        ClientInitializationError when the SDK rejects it. Either way the
        slot's previous handle is dropped.
        """
        state = self._slots[slot]
        state.handle = None

        if not credential or not credential.strip():
            state.status = SlotStatus.MISSING
            state.error = CredentialMissing(f"No credential configured for the {slot.value} slot.")
            raise state.error

        try:
            client = self.client_factory(credential)
        except Exception as exc:
            logger.warning("Client initialization failed", extra={"slot": slot.value, "error": str(exc)})
            state.status = SlotStatus.FAILED
            state.error = ClientInitializationError(str(exc))
            raise state.error from exc

        state.handle = ClientHandle(slot=slot, client=client, model_name=self.model_name, credential=credential)
        state.status = SlotStatus.READY
        state.error = None
        return state.handle

    def require_client(self, slot: CredentialSlot) -> ClientHandle:
        """Return the live handle or raise the slot's not-ready error."""
        state = self._slots[slot]
        if state.handle is not None:
            return state.handle
        if state.error is not None:
            raise state.error
        raise CredentialMissing(f"No credential configured for the {slot.value} slot.")

    def get_handle(self, slot: CredentialSlot) -> Optional[ClientHandle]:
        return self._slots[slot].handle

    def status(self, slot: CredentialSlot) -> SlotStatus:
        return self._slots[slot].status

    def last_error(self, slot: CredentialSlot) -> Optional[ChainTutorError]:
        return self._slots[slot].error

    def is_ready(self, slot: CredentialSlot) -> bool:
        return self._slots[slot].status is SlotStatus.READY

    def reset(self, slot: CredentialSlot) -> None:
        self._slots[slot] = _SlotState()
