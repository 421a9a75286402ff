from __future__ import annotations

import json

import pytest

from chain_tutor.errors import (
    ClientInitializationError,
    CredentialMissing,
    EmptyPayloadError,
    ErrorKind,
    MalformedJsonError,
    ShapeError,
)
from chain_tutor.resilience import Cooldown, CooldownPhase, classify_error


class FakeApiError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (RuntimeError("429 RESOURCE_EXHAUSTED. Resource has been exhausted"), ErrorKind.RATE_LIMITED),
        (RuntimeError("You exceeded your current quota"), ErrorKind.RATE_LIMITED),
        (FakeApiError(429, "Too many requests"), ErrorKind.RATE_LIMITED),
        (RuntimeError("400 INVALID_ARGUMENT. API key not valid. Please pass a valid API key."), ErrorKind.INVALID_CREDENTIAL),
        (RuntimeError("Invalid API Key supplied"), ErrorKind.INVALID_CREDENTIAL),
        (MalformedJsonError("bad json"), ErrorKind.MALFORMED_JSON),
        (json.JSONDecodeError("Expecting value", "[", 1), ErrorKind.MALFORMED_JSON),
        (EmptyPayloadError("empty"), ErrorKind.EMPTY_PAYLOAD),
        (ShapeError("not an array"), ErrorKind.SHAPE),
        (CredentialMissing("no key"), ErrorKind.CREDENTIAL_MISSING),
        (ClientInitializationError("rejected"), ErrorKind.CLIENT_INITIALIZATION),
        (FakeApiError(500, "Internal error"), ErrorKind.UNKNOWN),
        (ValueError("boom"), ErrorKind.UNKNOWN),
    ],
)
def test_classify_error_kinds(error: Exception, kind: ErrorKind) -> None:
    assert classify_error(error).kind is kind


def test_rate_limit_takes_precedence_over_invalid_key() -> None:
    error = RuntimeError("quota exceeded for invalid api key")
    assert classify_error(error).kind is ErrorKind.RATE_LIMITED


def test_unknown_keeps_raw_message_in_user_message() -> None:
    classified = classify_error(ValueError("connection reset"))
    assert classified.detail == "connection reset"
    assert "connection reset" in classified.user_message("của bạn")
    assert "của bạn" in classified.user_message("của bạn")


def test_each_kind_has_distinct_message() -> None:
    messages = {kind: classify_error(_error_for(kind)).user_message() for kind in ErrorKind}
    assert len(set(messages.values())) == len(ErrorKind)


def _error_for(kind: ErrorKind) -> Exception:
    return {
        ErrorKind.CLIENT_INITIALIZATION: ClientInitializationError("x"),
        ErrorKind.CREDENTIAL_MISSING: CredentialMissing("x"),
        ErrorKind.RATE_LIMITED: RuntimeError("RESOURCE_EXHAUSTED"),
        ErrorKind.INVALID_CREDENTIAL: RuntimeError("API key not valid"),
        ErrorKind.EMPTY_PAYLOAD: EmptyPayloadError("x"),
        ErrorKind.MALFORMED_JSON: MalformedJsonError("x"),
        ErrorKind.SHAPE: ShapeError("x"),
        ErrorKind.UNKNOWN: RuntimeError("x"),
    }[kind]


def test_cooldown_expires_after_duration() -> None:
    clock = FakeClock(100.0)
    cooldown = Cooldown(60.0, clock=clock)
    assert cooldown.phase is CooldownPhase.IDLE

    cooldown.trigger()
    assert cooldown.is_active()
    assert cooldown.expires_at == 160.0

    clock.now = 159.5
    assert cooldown.is_active()
    assert cooldown.remaining() == pytest.approx(0.5)

    clock.now = 160.0
    assert not cooldown.is_active()
    assert cooldown.phase is CooldownPhase.IDLE
    assert cooldown.remaining() == 0.0


def test_cooldown_clear_and_retrigger() -> None:
    clock = FakeClock(0.0)
    cooldown = Cooldown(60.0, clock=clock)
    cooldown.trigger()
    cooldown.clear()
    assert not cooldown.is_active()

    clock.now = 10.0
    cooldown.trigger()
    assert cooldown.expires_at == 70.0
