"""Markdown-subset parser and HTML renderer for assistant replies.

Grammar:
    document := block ("\\n\\n"+ block)*
    block    := heading | unordered_list | ordered_list | paragraph
    heading  := ("#" | "##" | "###") " " inline
    unordered_list := line+ where every line starts with "- " or "* "
    ordered_list   := line+ where every line starts with "<digits>. "
    inline   := (link | bold | italic | text)*
    link     := "[" text "](" http(s) url ")"
    bold     := "**" text "**"
    italic   := "*" text "*"

Spans do not nest. Everything is HTML-escaped on output.
"""
from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import List, Literal, Optional

BlockKind = Literal["heading", "unordered_list", "ordered_list", "paragraph"]
SpanKind = Literal["text", "bold", "italic", "link"]

_BLOCK_SPLIT = re.compile(r"\n\s*\n+")
_HEADING = re.compile(r"^(#{1,3}) (.*)$", re.DOTALL)
_UNORDERED_ITEM = re.compile(r"^[-*] ")
_ORDERED_ITEM = re.compile(r"^\d+\. ")
_INLINE = re.compile(
    r"\[(?P<link_text>[^\]]+)\]\((?P<url>https?://[^\s)]+)\)"
    r"|\*\*(?P<bold>.+?)\*\*"
    r"|\*(?P<italic>.+?)\*"
)


@dataclass(frozen=True)
class Span:
    kind: SpanKind
    text: str
    url: Optional[str] = None


@dataclass
class Block:
    kind: BlockKind
    level: int = 0
    spans: List[Span] = field(default_factory=list)
    items: List[List[Span]] = field(default_factory=list)


def parse_inline(text: str) -> List[Span]:
    spans: List[Span] = []
    position = 0
    for match in _INLINE.finditer(text):
        if match.start() > position:
            spans.append(Span("text", text[position : match.start()]))
        if match.group("url"):
            spans.append(Span("link", match.group("link_text"), match.group("url")))
        elif match.group("bold") is not None:
            spans.append(Span("bold", match.group("bold")))
        else:
            spans.append(Span("italic", match.group("italic")))
        position = match.end()
    if position < len(text):
        spans.append(Span("text", text[position:]))
    return spans


def _parse_block(raw: str) -> Block:
    heading = _HEADING.match(raw)
    if heading:
        return Block("heading", level=len(heading.group(1)), spans=parse_inline(heading.group(2)))

    lines = [line.strip() for line in raw.split("\n")]
    if all(_UNORDERED_ITEM.match(line) for line in lines):
        return Block("unordered_list", items=[parse_inline(_UNORDERED_ITEM.sub("", line, count=1)) for line in lines])
    if all(_ORDERED_ITEM.match(line) for line in lines):
        return Block("ordered_list", items=[parse_inline(_ORDERED_ITEM.sub("", line, count=1)) for line in lines])

    return Block("paragraph", spans=parse_inline(raw))


def parse_blocks(text: str) -> List[Block]:
    """Split on blank lines and classify each non-empty block."""
    return [_parse_block(raw.strip("\n")) for raw in _BLOCK_SPLIT.split(text or "") if raw.strip()]


def render_spans(spans: List[Span]) -> str:
    rendered: List[str] = []
    for span in spans:
        text = html.escape(span.text)
        if span.kind == "link" and span.url:
            href = html.escape(span.url, quote=True)
            rendered.append(f'<a href="{href}" target="_blank" rel="noopener noreferrer">{text}</a>')
        elif span.kind == "bold":
            rendered.append(f"<strong>{text}</strong>")
        elif span.kind == "italic":
            rendered.append(f"<em>{text}</em>")
        else:
            rendered.append(text.replace("\n", "<br>"))
    return "".join(rendered)


def render_block(block: Block) -> str:
    if block.kind == "heading":
        # "#" renders as h2.
        tag = f"h{block.level + 1}"
        return f"<{tag}>{render_spans(block.spans)}</{tag}>"
    if block.kind in ("unordered_list", "ordered_list"):
        tag = "ul" if block.kind == "unordered_list" else "ol"
        items = "".join(f"<li>{render_spans(item)}</li>" for item in block.items)
        return f"<{tag}>{items}</{tag}>"
    return f"<p>{render_spans(block.spans)}</p>"


def render_html(text: str) -> str:
    return "\n".join(render_block(block) for block in parse_blocks(text))


def render_inline(text: str) -> str:
    """Inline spans only, for short fields such as titles and list items."""
    return render_spans(parse_inline(text or ""))
