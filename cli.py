from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from chain_tutor.alerts import AlertFeed
from chain_tutor.assistant import ChatAssistant
from chain_tutor.clients import CredentialSlot
from chain_tutor.config import Settings
from chain_tutor.context import AIContext
from chain_tutor.logging import configure_logging
from chain_tutor.notifications import NotificationCenter
from chain_tutor.types import AlertRecord, ConversationMessage


def _build_context(settings: Settings, api_key: str = "") -> AIContext:
    """Create the shared context, letting --api-key override the system key."""
    if api_key:
        settings.system_api_key = api_key
    return AIContext.build(settings)


def _flush_notifications(notifier: NotificationCenter) -> None:
    """Print error/warning notices to stderr; the rest are only logged."""
    for notice in notifier.drain():
        if notice.type in {"error", "warning"}:
            print(f"[{notice.type}] {notice.message}", file=sys.stderr)


def _print_reply(message: Optional[ConversationMessage]) -> None:
    if message is None:
        return
    print("\nAssistant>")
    print(message.body)


def _print_alerts(alerts: List[AlertRecord]) -> None:
    """Print alert records in a readable block layout."""
    if not alerts:
        print("Không có cảnh báo nào.")
        return

    for idx, alert in enumerate(alerts, start=1):
        print(f"\n[{idx}] {alert.title}  ({alert.last_updated})")
        print(f"    {alert.description}")
        if alert.indicators:
            print("    Dấu hiệu nhận biết:")
            for item in alert.indicators:
                print(f"      - {item}")
        if alert.mitigations:
            print("    Cách phòng tránh:")
            for item in alert.mitigations:
                print(f"      - {item}")
        if alert.source_url:
            print(f"    Nguồn: {alert.source_url}")

    citations = alerts[0].citations
    if citations:
        print("\nNguồn tham khảo:")
        for citation in citations:
            print(f"- {citation.title}: {citation.uri}")


def command_ask(args: argparse.Namespace, settings: Settings) -> int:
    """Ask one question, optionally with an attached file."""
    notifier = NotificationCenter(settings.notification_duration_ms)
    assistant = ChatAssistant(_build_context(settings, args.api_key), notifier)

    if not assistant.is_ready:
        print("Missing Gemini API key. Set API_KEY/GEMINI_API_KEY or pass --api-key.", file=sys.stderr)
        return 2

    if args.file:
        if assistant.attachments.stage_path(Path(args.file).expanduser()) is None:
            _flush_notifications(notifier)
            return 2

    reply = assistant.send(args.question)
    _flush_notifications(notifier)
    _print_reply(reply)
    if reply is None or reply.error_detail:
        return 1
    return 0


def command_chat(args: argparse.Namespace, settings: Settings) -> int:
    """Start an interactive session in the terminal."""
    notifier = NotificationCenter(settings.notification_duration_ms)
    assistant = ChatAssistant(_build_context(settings, args.api_key), notifier)
    assistant.start()
    print(assistant.messages[0].body)
    if not assistant.is_ready:
        return 2

    print("\nType 'exit' or 'quit' to stop. '/attach <path>' stages a file, '/detach' removes it.")
    for idx, path in enumerate(assistant.learning_paths, start=1):
        print(f"  /{idx}  {path.label}")

    while True:
        try:
            line = input("\nYou> ").strip()
        except EOFError:
            print("\nExiting chat.")
            break

        if not line:
            continue
        if line.lower() in {"exit", "quit"}:
            print("Exiting chat.")
            break
        if line.startswith("/attach "):
            staged = assistant.attachments.stage_path(Path(line[len("/attach ") :].strip()).expanduser())
            if staged is not None:
                print(f"Đã đính kèm: {staged.source_file}")
            elif assistant.attachments.staged is not None:
                print("Đã có một tệp được đính kèm. Dùng /detach để gỡ bỏ trước.")
            _flush_notifications(notifier)
            continue
        if line == "/detach":
            assistant.attachments.clear()
            continue
        if line[1:].isdigit() and line.startswith("/"):
            choice = int(line[1:]) - 1
            if 0 <= choice < len(assistant.learning_paths):
                line = assistant.learning_paths[choice].prompt

        reply = assistant.send(line)
        _flush_notifications(notifier)
        _print_reply(reply)
    return 0


def command_alerts(args: argparse.Namespace, settings: Settings) -> int:
    """Fetch the current scam alerts once and print them."""
    notifier = NotificationCenter(settings.notification_duration_ms)
    feed = AlertFeed(AIContext.build(settings), notifier)
    slot = CredentialSlot.USER if args.use_user_key else CredentialSlot.SYSTEM

    replaced = feed.fetch(slot)
    _flush_notifications(notifier)
    if not replaced:
        return 1
    _print_alerts(feed.alerts)
    return 0


def command_key(args: argparse.Namespace, settings: Settings) -> int:
    """Manage the locally stored personal API key."""
    notifier = NotificationCenter(settings.notification_duration_ms)
    feed = AlertFeed(AIContext.build(settings), notifier)

    if args.action == "save":
        ok = feed.save_user_key(args.value or "")
        _flush_notifications(notifier)
        print(feed.slots[CredentialSlot.USER].status_message)
        return 0 if ok else 1
    if args.action == "clear":
        feed.clear_user_key()
        _flush_notifications(notifier)
        print(feed.slots[CredentialSlot.USER].status_message)
        return 0

    stored = feed.context.stored_user_key
    print(f"Stored personal key: {'yes' if stored else 'no'}")
    print(f"Status: {feed.context.provider.status(CredentialSlot.USER).value}")
    print(f"Credential file: {settings.user_credential_path}")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(description="Blockchain tutor assistant CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ask_parser = subparsers.add_parser("ask", help="Ask one question and print the answer")
    ask_parser.add_argument("question", help="Question text")
    ask_parser.add_argument("--file", default="", help="Attach an image, PDF or text file")
    ask_parser.add_argument("--api-key", default="", help="Gemini API key (overrides API_KEY)")

    chat_parser = subparsers.add_parser("chat", help="Start interactive terminal chat")
    chat_parser.add_argument("--api-key", default="", help="Gemini API key (overrides API_KEY)")

    alerts_parser = subparsers.add_parser("alerts", help="Fetch the latest scam alerts")
    alerts_parser.add_argument(
        "--use-user-key",
        action="store_true",
        help="Use the stored personal key instead of the system key",
    )

    key_parser = subparsers.add_parser("key", help="Manage the stored personal API key")
    key_parser.add_argument("action", choices=["save", "clear", "status"])
    key_parser.add_argument("value", nargs="?", default="", help="Key value for 'save'")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint."""
    load_dotenv()
    settings = Settings()
    configure_logging(settings.log_level)
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.command == "ask":
        return command_ask(args, settings)
    if args.command == "chat":
        return command_chat(args, settings)
    if args.command == "alerts":
        return command_alerts(args, settings)
    if args.command == "key":
        return command_key(args, settings)

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
