"""Request building and response interpretation for Gemini calls.

Two modes share this module. Free-text mode builds chat requests and turns
the reply into a message body with an optional sources block. Structured mode
recovers a JSON array from a possibly fenced reply and turns it into alert
records.
"""
from __future__ import annotations

import json
import re
import uuid
from typing import Any, Callable, List, Optional, Tuple

from google.genai import types as genai_types

from .attachments import decode_payload
from .errors import EmptyPayloadError, MalformedJsonError, ShapeError
from .prompts import AUTHOR_ATTRIBUTION, NO_REPLY_FALLBACK, format_sources_block
from .types import AlertRecord, Attachment, Citation

# A language tag needs trailing whitespace, except "json" directly before the payload.
FENCE_PATTERN = re.compile(
    r"```(?:[A-Za-z0-9_+-]+(?=\s)|(?i:json)(?=[\[{]))?\s*(.*?)\s*```",
    re.DOTALL,
)


def build_chat_request(
    user_text: str,
    attachment: Optional[Attachment],
    system_instruction: str,
    temperature: Optional[float] = None,
) -> Tuple[List[genai_types.Content], genai_types.GenerateContentConfig, bool]:
    """Build contents and config for one assistant turn.

    Parts are ordered attachment first, then text. Web search grounding is
    enabled only when no attachment is present. Returns the contents, the
    config and whether grounding was requested.
    """
    parts: List[genai_types.Part] = []
    if attachment is not None:
        parts.append(
            genai_types.Part(
                inline_data=genai_types.Blob(mime_type=attachment.mime_type, data=decode_payload(attachment))
            )
        )
    text = user_text.strip()
    if text:
        parts.append(genai_types.Part(text=text))

    use_search = attachment is None
    config = genai_types.GenerateContentConfig(
        system_instruction=system_instruction,
        temperature=temperature,
        tools=[genai_types.Tool(google_search=genai_types.GoogleSearch())] if use_search else None,
    )
    return [genai_types.Content(role="user", parts=parts)], config, use_search


def build_alerts_request(prompt: str) -> Tuple[List[genai_types.Content], genai_types.GenerateContentConfig]:
    """Alerts always ask for web grounding."""
    contents = [genai_types.Content(role="user", parts=[genai_types.Part(text=prompt)])]
    config = genai_types.GenerateContentConfig(
        tools=[genai_types.Tool(google_search=genai_types.GoogleSearch())],
    )
    return contents, config


def response_text(response: Any) -> Optional[str]:
    text = getattr(response, "text", None)
    return text if isinstance(text, str) else None


def extract_citations(response: Any) -> List[Citation]:
    """Read web citations from the first candidate's grounding metadata.

    Chunks missing a uri or a title are dropped. Returns an empty list when
    the response carries no grounding metadata.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    citations: List[Citation] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        title = getattr(web, "title", None)
        if uri and title:
            citations.append(Citation(uri=uri, title=title))
    return citations


def compose_reply(text: Optional[str], citations: Optional[List[Citation]]) -> str:
    """Reply text, then the sources block when there are citations, then the attribution."""
    body = text if text else NO_REPLY_FALLBACK
    if citations:
        body += format_sources_block([(c.title, c.uri) for c in citations])
    return body + AUTHOR_ATTRIBUTION


def extract_json_payload(raw_text: Optional[str]) -> str:
    """Strip a surrounding fenced code block if present and return the payload."""
    trimmed = (raw_text or "").strip()
    match = FENCE_PATTERN.search(trimmed)
    payload = match.group(1).strip() if match else trimmed
    if not payload:
        raise EmptyPayloadError("Dữ liệu AI trả về trống sau khi xử lý markdown.")
    return payload


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return [str(value)]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_alert_records(
    raw_text: Optional[str],
    citations: Optional[List[Citation]] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> List[AlertRecord]:
    """Turn a structured reply into alert records sharing one citation list."""
    make_id = id_factory or (lambda: uuid.uuid4().hex)
    payload = extract_json_payload(raw_text)
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedJsonError(f"Invalid JSON in alert payload: {exc}", payload=payload) from exc

    if not isinstance(parsed, list):
        raise ShapeError(f"Expected a JSON array, got {type(parsed).__name__}.")
    if not all(isinstance(item, dict) for item in parsed):
        raise ShapeError("Every alert must be a JSON object.")

    return [
        AlertRecord(
            id=make_id(),
            title=_text(item.get("tieuDeCanhBao")),
            description=_text(item.get("moTaChiTiet")),
            indicators=_string_list(item.get("dauHieuNhanBiet")),
            mitigations=_string_list(item.get("cachPhongTranh")),
            last_updated=_text(item.get("ngayCapNhat")),
            source_url=_optional_str(item.get("urlNguonCanhBao")),
            citations=citations,
        )
        for item in parsed
    ]
