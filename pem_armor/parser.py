# --- File: pem_armor/parser.py ---
"""
Envelope grammar: locates the BEGIN/END boundaries, splits the body into
the header section and the base64 content, and assembles a Message.

    pem        = *pre-eb-text pre-eb [headers blank-line] content post-eb *text
    pre-eb     = "-----BEGIN " label "-----" eol
    post-eb    = "-----END " label "-----"
    headers    = 1*header-entry              ; see headers.py
    content    = *(base64-line eol)
"""
import logging
import re
from typing import List, Tuple

from .codec import CodecError, b64decode
from .errors import ContentError, EnvelopeError
from .headers import looks_like_header, parse_headers, split_lines
from .models import HeaderBlock, Message

logger = logging.getLogger(__name__)

_PRE_EB = re.compile(r"^-----BEGIN ([^\r\n]+?)-----[ \t]*\r?$", re.MULTILINE)
_POST_EB = re.compile(r"^-----END ([^\r\n]*?)-----[ \t]*\r?$", re.MULTILINE)


def _skip_eol(text: str, pos: int) -> int:
    if text.startswith("\r\n", pos):
        return pos + 2
    if text.startswith("\n", pos):
        return pos + 1
    return pos


def _decode_content(text: str, lines: List[Tuple[int, str]]) -> bytes:
    """Strips and joins the content lines, then base64-decodes them."""
    chunks = []
    offsets = []
    for offset, line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        lead = len(line) - len(line.lstrip())
        chunks.append(stripped)
        offsets.append((offset + lead, len(stripped)))
    try:
        return b64decode("".join(chunks))
    except CodecError as exc:
        # Map the index in the joined text back to the source
        index = exc.index
        source_offset = offsets[-1][0] + offsets[-1][1] if offsets else 0
        for line_offset, length in offsets:
            if index < length:
                source_offset = line_offset + index
                break
            index -= length
        region_end = offsets[-1][0] + offsets[-1][1] if offsets else source_offset
        raise ContentError(f"invalid base64 content: {exc}", text, source_offset,
                           max(region_end, source_offset + 1)) from exc


def parse(text: str) -> Message:
    """
    Parses the single PEM block contained in `text`.

    Text before the BEGIN line and after the END line is ignored. Raises
    EnvelopeError when the boundaries are missing or mismatched, HeaderError
    for a bad header section and ContentError for undecodable base64; each
    carries the line/column of the offending text.
    """
    pre_eb = _PRE_EB.search(text)
    if pre_eb is None:
        raise EnvelopeError("Missing PEM block", text, 0)
    label = pre_eb.group(1)
    body_start = _skip_eol(text, pre_eb.end())
    logger.debug(f"Found PEM block '{label}' at offset {pre_eb.start()}.")

    post_eb = _POST_EB.search(text, body_start)
    if post_eb is None:
        raise EnvelopeError(f"missing '-----END {label}-----' boundary", text,
                            pre_eb.start(), pre_eb.end())
    nested = _PRE_EB.search(text, body_start, post_eb.start())
    if nested is not None:
        raise EnvelopeError("unexpected BEGIN boundary inside PEM block", text,
                            nested.start(), nested.end())
    if post_eb.group(1) != label:
        raise EnvelopeError(f"END label '{post_eb.group(1)}' does not match BEGIN label '{label}'",
                            text, post_eb.start(1), post_eb.end(1))
    body_end = post_eb.start()

    lines = split_lines(text, body_start, body_end)
    headers = HeaderBlock()
    content_lines = lines
    first = next((i for i, (_, line) in enumerate(lines) if line.strip()), None)
    if first is not None and looks_like_header(lines[first][1]):
        separator = next((i for i in range(first, len(lines)) if not lines[i][1].strip()), None)
        if separator is None:
            raise EnvelopeError("header section must be followed by a blank line", text,
                                body_end, post_eb.end())
        header_end = lines[separator][0]
        headers = parse_headers(text, lines[first][0], header_end)
        content_lines = lines[separator + 1:]
        logger.debug(f"Parsed header section of PEM block '{label}'.")

    content = _decode_content(text, content_lines)
    logger.debug(f"Decoded {len(content)} content bytes from PEM block '{label}'.")
    return Message(label=label, headers=headers, content=content)
