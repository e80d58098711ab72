# --- File: pem_armor/errors.py ---
from typing import Optional


class PemError(ValueError):
    """Base class for every error raised by pem_armor."""


class ParseError(PemError):
    """
    A decode failure anchored at a position in the source text.

    `line` and `column` are 1-based, `offset` and `end_offset` are 0-based
    character offsets into the text handed to `parse()`. The string form
    shows the offending line with a caret marker under the failing run.
    """

    def __init__(self, message: str, source: str, offset: int, end_offset: Optional[int] = None):
        offset = max(0, min(offset, len(source)))
        if end_offset is None or end_offset < offset:
            end_offset = offset
        self.message = message
        self.offset = offset
        self.end_offset = min(end_offset, len(source))
        self.line = source.count("\n", 0, offset) + 1
        line_start = source.rfind("\n", 0, offset) + 1
        line_end = source.find("\n", offset)
        if line_end == -1:
            line_end = len(source)
        self.column = offset - line_start + 1
        self.source_line = source[line_start:line_end].rstrip("\r")
        super().__init__(self._format())

    def _format(self) -> str:
        gutter = " " * len(str(self.line))
        # Marker never runs past the end of the displayed line
        width = max(1, min(self.end_offset - self.offset, len(self.source_line) - self.column + 1))
        marker = " " * (self.column - 1) + "^" * width
        return (
            f"{gutter}--> {self.line}:{self.column}\n"
            f"{gutter} |\n"
            f"{self.line} | {self.source_line}\n"
            f"{gutter} | {marker}\n"
            f"{gutter} = {self.message}"
        )

    @property
    def span(self):
        return self.offset, self.end_offset


class EnvelopeError(ParseError):
    """BEGIN/END boundaries are missing, mismatched or malformed."""


class HeaderError(ParseError):
    """A header entry is unknown, duplicated, out of order or has a malformed body."""


class ContentError(ParseError):
    """The base64 body could not be decoded."""


class RenderError(PemError):
    """A message could not be rendered to PEM text."""
