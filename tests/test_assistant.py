from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Sequence, Tuple

import pytest

from chain_tutor.assistant import ChatAssistant
from chain_tutor.config import Settings
from chain_tutor.context import AIContext
from chain_tutor.notifications import NotificationCenter
from chain_tutor.prompts import API_KEY_MISSING_MESSAGE, AUTHOR_ATTRIBUTION, WELCOME_MESSAGE


def make_response(text: str, sources: Sequence[Tuple[str, str]] = ()) -> SimpleNamespace:
    chunks = [SimpleNamespace(web=SimpleNamespace(title=title, uri=uri)) for title, uri in sources]
    return SimpleNamespace(
        text=text,
        candidates=[SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))],
    )


class ScriptedModels:
    def __init__(self, script: List[Any]) -> None:
        self.script = script
        self.calls: List[Dict[str, Any]] = []

    def generate_content(self, model: str, contents: Any, config: Any = None) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class ScriptedFactory:
    def __init__(self, script: List[Any], reject: bool = False) -> None:
        self.models = ScriptedModels(script)
        self.reject = reject

    def __call__(self, api_key: str) -> SimpleNamespace:
        if self.reject:
            raise ValueError("malformed api key")
        return SimpleNamespace(models=self.models)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def build_assistant(
    tmp_path: Path,
    script: List[Any],
    system_key: str = "sys-key",
    reject: bool = False,
) -> Tuple[ChatAssistant, ScriptedFactory, NotificationCenter, FakeClock]:
    settings = Settings(
        system_api_key=system_key,
        gemini_model_name="gemini-test",
        user_credential_path=tmp_path / "cred.json",
        rate_limit_cooldown_seconds=60.0,
        max_attachment_mb=1,
    )
    factory = ScriptedFactory(script, reject=reject)
    notifier = NotificationCenter()
    clock = FakeClock()
    context = AIContext.build(settings, client_factory=factory)
    return ChatAssistant(context, notifier, clock=clock), factory, notifier, clock


def test_start_greets_when_ready(tmp_path: Path) -> None:
    assistant, _, _, _ = build_assistant(tmp_path, [])
    assistant.start()
    assistant.start()
    assert [m.body for m in assistant.messages] == [WELCOME_MESSAGE]


def test_start_reports_missing_key(tmp_path: Path) -> None:
    assistant, _, _, _ = build_assistant(tmp_path, [], system_key="")
    assistant.start()
    assert assistant.messages[0].body == API_KEY_MISSING_MESSAGE
    assert assistant.messages[0].error_detail


def test_send_without_citations_appends_only_attribution(tmp_path: Path) -> None:
    assistant, factory, _, _ = build_assistant(tmp_path, [make_response("Blockchain là sổ cái phân tán.")])

    reply = assistant.send("Blockchain là gì?")

    assert reply is not None
    assert reply.body == "Blockchain là sổ cái phân tán." + AUTHOR_ATTRIBUTION
    assert reply.citations == []
    assert [(m.author, m.is_pending) for m in assistant.messages] == [("user", False), ("assistant", False)]
    assert assistant.messages[0].body == "Blockchain là gì?"
    assert factory.models.calls[0]["model"] == "gemini-test"
    assert factory.models.calls[0]["config"].tools[0].google_search is not None


def test_send_with_citations_lists_sources_before_attribution(tmp_path: Path) -> None:
    sources = [("Bitcoin whitepaper", "https://bitcoin.org/bitcoin.pdf"), ("Ethereum", "https://ethereum.org")]
    assistant, _, _, _ = build_assistant(tmp_path, [make_response("Trả lời", sources)])

    reply = assistant.send("Proof of work?")

    assert reply is not None
    assert reply.body.endswith(
        "**Nguồn tham khảo:**\n"
        "- [Bitcoin whitepaper](https://bitcoin.org/bitcoin.pdf)\n"
        "- [Ethereum](https://ethereum.org)" + AUTHOR_ATTRIBUTION
    )
    assert [c.title for c in reply.citations or []] == ["Bitcoin whitepaper", "Ethereum"]


def test_send_with_attachment_disables_search_and_consumes_file(tmp_path: Path) -> None:
    response = make_response("Đây là lừa đảo airdrop.", [("Ignored", "https://ignored.example")])
    assistant, factory, _, _ = build_assistant(tmp_path, [response])
    assistant.attachments.stage("screenshot.png", "image/png", b"\x89PNG")

    reply = assistant.send("Đây là gì?")

    assert reply is not None
    assert reply.citations is None
    assert "Nguồn tham khảo" not in reply.body
    assert assistant.messages[0].body == "[Tệp đã được đính kèm: screenshot.png]\nĐây là gì?"
    assert assistant.attachments.staged is None

    call = factory.models.calls[0]
    parts = call["contents"][0].parts
    assert parts[0].inline_data.mime_type == "image/png"
    assert parts[1].text == "Đây là gì?"
    assert not call["config"].tools


def test_send_attachment_only_is_allowed(tmp_path: Path) -> None:
    assistant, factory, _, _ = build_assistant(tmp_path, [make_response("Tệp PDF mô tả một token.")])
    assistant.attachments.stage("doc.pdf", "application/pdf", b"%PDF-1.4")

    assert assistant.send("   ") is not None
    parts = factory.models.calls[0]["contents"][0].parts
    assert len(parts) == 1
    assert parts[0].inline_data.mime_type == "application/pdf"
    assert assistant.messages[0].body == "[Tệp đã được đính kèm: doc.pdf]\n"


def test_blank_send_without_attachment_does_nothing(tmp_path: Path) -> None:
    assistant, factory, _, _ = build_assistant(tmp_path, [])
    assert assistant.send("   ") is None
    assert assistant.messages == []
    assert factory.models.calls == []


def test_not_ready_short_circuits_without_network(tmp_path: Path) -> None:
    assistant, factory, notifier, _ = build_assistant(tmp_path, [], system_key="")

    assert assistant.send("Xin chào") is None
    assert assistant.send("Xin chào lần nữa") is None

    assert factory.models.calls == []
    assert [m.body for m in assistant.messages] == [API_KEY_MISSING_MESSAGE]
    assert [n.type for n in notifier.pending] == ["error", "error"]


def test_rejected_credential_short_circuits(tmp_path: Path) -> None:
    assistant, factory, _, _ = build_assistant(tmp_path, [], reject=True)
    assert not assistant.is_ready
    assert assistant.send("Xin chào") is None
    assert factory.models.calls == []


def test_invalid_attachment_adds_no_pending_message(tmp_path: Path) -> None:
    assistant, factory, notifier, _ = build_assistant(tmp_path, [])

    assert assistant.attachments.stage("malware.exe", "application/x-msdownload", b"MZ") is None
    assert assistant.send("") is None

    assert assistant.messages == []
    assert factory.models.calls == []
    assert notifier.pending[0].type == "error"


def test_rate_limit_resolves_pending_message_with_error_and_cooldown(tmp_path: Path) -> None:
    error = RuntimeError("429 RESOURCE_EXHAUSTED. You exceeded your current quota")
    assistant, _, notifier, clock = build_assistant(tmp_path, [error, make_response("Đã ổn.")])

    reply = assistant.send("Ví nóng là gì?")

    assert reply is not None
    assert reply.error_detail
    assert "giới hạn yêu cầu" in reply.body
    assert reply.body.endswith(AUTHOR_ATTRIBUTION)
    assert not any(m.is_pending for m in assistant.messages)
    assert assistant.messages[-1] is reply
    assert assistant.cooldown.is_active()
    assert not assistant.can_send
    assert notifier.pending[-1].type == "error"

    # The cooldown is advisory: a direct call still goes through.
    assert assistant.send("Thử lại") is not None

    clock.now = 60.0
    assert assistant.can_send


def test_unknown_error_keeps_raw_detail(tmp_path: Path) -> None:
    assistant, _, _, _ = build_assistant(tmp_path, [ConnectionError("network unreachable")])

    reply = assistant.send("Sàn DEX là gì?")

    assert reply is not None
    assert reply.error_detail == "network unreachable"
    assert "network unreachable" in reply.body
    assert not assistant.cooldown.is_active()


def test_message_ids_are_unique(tmp_path: Path) -> None:
    assistant, _, _, _ = build_assistant(tmp_path, [make_response("a"), make_response("b")])
    assistant.start()
    assistant.send("một")
    assistant.send("hai")
    ids = [m.id for m in assistant.messages]
    assert len(ids) == len(set(ids)) == 5


def test_send_is_refused_while_loading(tmp_path: Path) -> None:
    assistant, factory, _, _ = build_assistant(tmp_path, [make_response("a")])
    assistant.is_loading = True
    assert assistant.send("Xin chào") is None
    assert factory.models.calls == []


@pytest.mark.parametrize("index", [0, 1, 2])
def test_learning_paths_send_their_prompt(tmp_path: Path, index: int) -> None:
    assistant, factory, _, _ = build_assistant(tmp_path, [make_response("ok")])
    path = assistant.learning_paths[index]
    assistant.send(path.prompt)
    assert factory.models.calls[0]["contents"][0].parts[0].text == path.prompt
