from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, List

import pytest

import cli
from chain_tutor import clients

ALERTS_JSON = (
    '[{"tieuDeCanhBao": "Sàn giả mạo", "moTaChiTiet": "Website nhái sàn lớn", '
    '"dauHieuNhanBiet": ["Tên miền lạ"], "cachPhongTranh": ["Đánh dấu trang chính thức"], '
    '"ngayCapNhat": "05/07/2025"}]'
)


class CannedModels:
    def __init__(self, text: str) -> None:
        self.text = text
        self.calls: List[Any] = []

    def generate_content(self, model: str, contents: Any, config: Any = None) -> SimpleNamespace:
        self.calls.append(contents)
        return SimpleNamespace(text=self.text, candidates=[])


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    credential_path = tmp_path / "cred.json"
    monkeypatch.setenv("USER_CREDENTIAL_PATH", str(credential_path))
    return credential_path


def install_fake_client(monkeypatch: pytest.MonkeyPatch, text: str) -> CannedModels:
    models = CannedModels(text)
    monkeypatch.setattr(clients, "default_client_factory", lambda api_key: SimpleNamespace(models=models))
    return models


def test_key_save_status_clear(cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    install_fake_client(monkeypatch, "[]")

    assert cli.main(["key", "save", "my-key"]) == 0
    assert cli_env.exists()

    assert cli.main(["key", "status"]) == 0
    out = capsys.readouterr().out
    assert "Stored personal key: yes" in out
    assert "Status: ready" in out

    assert cli.main(["key", "clear"]) == 0
    assert cli.main(["key", "status"]) == 0
    assert "Stored personal key: no" in capsys.readouterr().out


def test_key_save_blank_fails(cli_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    install_fake_client(monkeypatch, "[]")
    assert cli.main(["key", "save"]) == 1


def test_alerts_prints_records(cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("API_KEY", "sys-key")
    install_fake_client(monkeypatch, f"```json\n{ALERTS_JSON}\n```")

    assert cli.main(["alerts"]) == 0
    out = capsys.readouterr().out
    assert "Sàn giả mạo" in out
    assert "Tên miền lạ" in out


def test_alerts_without_key_fails(cli_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    models = install_fake_client(monkeypatch, "[]")
    assert cli.main(["alerts"]) == 1
    assert models.calls == []


def test_ask_prints_reply(cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    install_fake_client(monkeypatch, "Seed phrase là cụm từ khôi phục ví.")

    assert cli.main(["ask", "Seed phrase là gì?", "--api-key", "cli-key"]) == 0
    assert "Seed phrase là cụm từ khôi phục ví." in capsys.readouterr().out


def test_ask_rejects_unsupported_attachment(cli_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    models = install_fake_client(monkeypatch, "ok")
    archive = cli_env.parent / "bundle.zip"
    archive.write_bytes(b"PK")

    assert cli.main(["ask", "Xem tệp", "--api-key", "cli-key", "--file", str(archive)]) == 2
    assert models.calls == []
