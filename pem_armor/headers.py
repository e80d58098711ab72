# --- File: pem_armor/headers.py ---
"""
Header field grammar for the encapsulated header section.

Physical lines are first grouped into logical entries (RFC 822 folding:
a line starting with whitespace continues the previous entry), then each
entry is dispatched on its exact field name. Every logical character keeps
its offset in the source text so errors point at the real source.
"""
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .codec import CodecError, b64decode, hexdecode
from .errors import HeaderError
from .models import (
    AsymmetricID, AsymmetricOriginator, AsymmetricRecipient, Certificate, DEKInfo, HeaderBlock,
    KeyInfoAsymmetric, KeyInfoSymmetric, MICInfo, ProcType, ProcTypeKind, SymmetricID,
    SymmetricOriginator, SymmetricRecipient,
)

logger = logging.getLogger(__name__)

_FIELD_NAME = re.compile(r"([A-Za-z0-9][A-Za-z0-9-]*):[ ]?")
_FIELD_LINE = re.compile(r"[A-Za-z0-9][A-Za-z0-9-]*:")
_VERSION = re.compile(r"[0-9]+")
_CONTINUATION = (" ", "\t")

PROC_TYPE = "Proc-Type"
CONTENT_DOMAIN = "Content-Domain"
DEK_INFO = "DEK-Info"
ORIGINATOR_ID_ASYMMETRIC = "Originator-ID-Asymmetric"
ORIGINATOR_ID_SYMMETRIC = "Originator-ID-Symmetric"
ORIGINATOR_CERTIFICATE = "Originator-Certificate"
ISSUER_CERTIFICATE = "Issuer-Certificate"
KEY_INFO = "Key-Info"
MIC_INFO = "MIC-Info"
RECIPIENT_ID_ASYMMETRIC = "Recipient-ID-Asymmetric"
RECIPIENT_ID_SYMMETRIC = "Recipient-ID-Symmetric"
RECIPIENT_CERTIFICATE = "Recipient-Certificate"
CRL = "CRL"


def looks_like_header(line: str) -> bool:
    """True if `line` opens a `<Field-Name>:` entry."""
    return _FIELD_LINE.match(line) is not None


class HeaderEntry:
    """One logical (unfolded) header entry with source offsets for every character."""

    def __init__(self, name: str, name_offset: int, line_offset: int):
        self.name = name
        self.name_offset = name_offset
        self.line_offset = line_offset
        self.line_end = line_offset
        self._segments: List[Tuple[int, str]] = []

    def append(self, offset: int, text: str):
        if text:
            self._segments.append((offset, text))

    @property
    def value(self) -> str:
        return "".join(text for _, text in self._segments)

    @property
    def value_offset(self) -> int:
        if self._segments:
            return self._segments[0][0]
        return self.name_offset + len(self.name) + 1

    def offset_of(self, index: int) -> int:
        """Maps an index into `value` back to a source offset."""
        for start, text in self._segments:
            if index < len(text):
                return start + index
            index -= len(text)
        if self._segments:
            start, text = self._segments[-1]
            return start + len(text)
        return self.value_offset

    def span_of(self, start: int, end: int) -> Tuple[int, int]:
        if end <= start:
            offset = self.offset_of(start)
            return offset, offset
        return self.offset_of(start), self.offset_of(end - 1) + 1


def split_lines(source: str, start: int, end: int) -> List[Tuple[int, str]]:
    """
    (offset, line) pairs for source[start:end]. Only LF ends a line; a CR
    before it is dropped. Other Unicode line separators stay in the line.
    """
    pieces = source[start:end].split("\n")
    if pieces[-1] == "":
        pieces.pop()
    lines = []
    offset = start
    for piece in pieces:
        lines.append((offset, piece.rstrip("\r")))
        offset += len(piece) + 1
    return lines


def split_entries(source: str, start: int, end: int) -> List[HeaderEntry]:
    """
    Groups the physical lines of source[start:end] into unfolded entries.
    After the colon and one optional space, the rest of the first line is
    kept verbatim; continuation lines are trimmed before being appended.
    """
    entries: List[HeaderEntry] = []
    for line_offset, line in split_lines(source, start, end):
        if not line:
            continue
        if line.startswith(_CONTINUATION):
            if not entries:
                raise HeaderError("continuation line without a preceding header field",
                                  source, line_offset, line_offset + len(line))
            stripped = line.strip()
            entries[-1].append(line_offset + line.index(stripped[0]) if stripped else line_offset, stripped)
            entries[-1].line_end = line_offset + len(line)
            continue
        match = _FIELD_NAME.match(line)
        if match is None:
            raise HeaderError("malformed header line, expected '<Field-Name>: <value>'",
                              source, line_offset, line_offset + len(line))
        entry = HeaderEntry(match.group(1), line_offset, line_offset)
        entry.append(line_offset + match.end(), line[match.end():])
        entry.line_end = line_offset + len(line)
        entries.append(entry)
    logger.debug(f"Split header section into {len(entries)} entries.")
    return entries


class _HeaderDecoder:
    """Walks header entries in order and assembles a HeaderBlock."""

    def __init__(self, source: str):
        self.source = source
        self.fields: Dict[str, Any] = {}
        self.originator: Optional[Dict[str, Any]] = None
        self.recipients: List[Any] = []
        self.pending_recipient: Optional[Dict[str, Any]] = None
        # "originator", "recipient", "skip" or None: who the next Key-Info belongs to
        self.key_info_owner: Optional[str] = None
        self.handlers: Dict[str, Callable[[HeaderEntry], None]] = {
            PROC_TYPE: self._proc_type,
            CONTENT_DOMAIN: self._content_domain,
            DEK_INFO: self._dek_info,
            ORIGINATOR_ID_ASYMMETRIC: self._originator_id_asymmetric,
            ORIGINATOR_CERTIFICATE: self._originator_certificate,
            ORIGINATOR_ID_SYMMETRIC: self._originator_id_symmetric,
            KEY_INFO: self._key_info,
            ISSUER_CERTIFICATE: self._issuer_certificate,
            MIC_INFO: self._mic_info,
            RECIPIENT_ID_ASYMMETRIC: self._recipient_id_asymmetric,
            RECIPIENT_ID_SYMMETRIC: self._recipient_id_symmetric,
            RECIPIENT_CERTIFICATE: self._recipient_certificate,
            CRL: self._crl,
        }

    # --- error helpers ---

    def _fail(self, message: str, start: int, end: Optional[int] = None) -> HeaderError:
        return HeaderError(message, self.source, start, end)

    def _fail_line(self, message: str, entry: HeaderEntry) -> HeaderError:
        return self._fail(message, entry.line_offset, entry.line_end)

    def _fail_value(self, message: str, entry: HeaderEntry, start: int = 0, end: Optional[int] = None) -> HeaderError:
        if end is None:
            end = len(entry.value)
        return self._fail(message, *entry.span_of(start, end))

    # --- value helpers ---

    def _parts(self, entry: HeaderEntry, count: int, shape: str) -> List[Tuple[str, int]]:
        """Splits the entry value on commas into exactly `count` (text, index) parts."""
        value = entry.value
        pieces = value.split(",")
        if len(pieces) != count:
            raise self._fail_value(f"malformed {entry.name}, expected '{shape}'", entry)
        parts = []
        index = 0
        for piece in pieces:
            parts.append((piece, index))
            index += len(piece) + 1
        return parts

    def _required(self, entry: HeaderEntry, part: Tuple[str, int], what: str) -> str:
        text, index = part
        if not text:
            raise self._fail_value(f"{entry.name} is missing its {what}", entry, index, index)
        return text

    def _base64(self, entry: HeaderEntry, part: Tuple[str, int], what: str) -> bytes:
        text, index = part
        if not text:
            raise self._fail_value(f"{entry.name} is missing its {what}", entry, index, index)
        try:
            return b64decode(text)
        except CodecError as exc:
            raise self._fail_value(f"invalid base64 in {entry.name} {what}: {exc}", entry,
                                   index + exc.index, index + exc.index + 1) from exc

    def _hex(self, entry: HeaderEntry, part: Tuple[str, int], what: str) -> bytes:
        text, index = part
        try:
            return hexdecode(text)
        except CodecError as exc:
            raise self._fail_value(f"invalid hex in {entry.name} {what}: {exc}", entry,
                                   index, index + len(text)) from exc

    def _set_once(self, entry: HeaderEntry, key: str, value: Any):
        if key in self.fields:
            raise self._fail_line(f"duplicate {entry.name} header entry", entry)
        self.fields[key] = value

    # --- scalar fields ---

    def _proc_type(self, entry: HeaderEntry):
        value = entry.value
        version, sep, specifier = value.partition(",")
        if not sep:
            raise self._fail_value("malformed Proc-Type, expected '<version>,<specifier>'", entry)
        if not _VERSION.fullmatch(version):
            raise self._fail_value(f"invalid Proc-Type version {version!r}", entry, 0, len(version))
        start = len(version) + 1
        try:
            kind = ProcTypeKind(specifier)
        except ValueError:
            raise self._fail_value(f"invalid Proc-Type specifier {specifier!r}", entry,
                                   start, len(value)) from None
        self._set_once(entry, "proc_type", ProcType(version=int(version), kind=kind))

    def _content_domain(self, entry: HeaderEntry):
        self._set_once(entry, "content_domain", entry.value)

    def _dek_info(self, entry: HeaderEntry):
        algorithm, sep, parameter = entry.value.partition(",")
        if not algorithm:
            raise self._fail_value("DEK-Info is missing its algorithm", entry, 0, 0)
        param_bytes = self._hex(entry, (parameter, len(algorithm) + 1), "parameter") if sep else b""
        self._set_once(entry, "dek_info", DEKInfo(algorithm=algorithm, parameter=param_bytes))

    def _crl(self, entry: HeaderEntry):
        if not self._is_crl_message():
            raise self._fail_line("CRL header entry requires 'Proc-Type: <version>,CRL'", entry)
        self._set_once(entry, "crl", self._base64(entry, (entry.value, 0), "payload"))

    # --- originator ---

    def _is_crl_message(self) -> bool:
        return self.fields["proc_type"].kind is ProcTypeKind.CRL

    def _open_originator(self, entry: HeaderEntry, variant: str, originator_id: Any):
        if self.originator is not None:
            raise self._fail_line("duplicate originator header entry", entry)
        if self.recipients or self.pending_recipient is not None:
            raise self._fail_line(f"{entry.name} must precede the recipient entries", entry)
        self.originator = {
            "variant": variant,
            "entry": entry,
            "id": originator_id,
            "key_info": None,
            "issuer_certificates": [],
        }
        self.key_info_owner = "originator"

    def _originator_id_asymmetric(self, entry: HeaderEntry):
        self._open_originator(entry, "asymmetric", self._asymmetric_id(entry))

    def _originator_certificate(self, entry: HeaderEntry):
        if self._is_crl_message():
            logger.debug(f"Skipping {entry.name} in CRL message.")
            return
        cert = Certificate(data=self._base64(entry, (entry.value, 0), "certificate"))
        self._open_originator(entry, "asymmetric", cert)

    def _originator_id_symmetric(self, entry: HeaderEntry):
        self._open_originator(entry, "symmetric", self._symmetric_id(entry))

    def _issuer_certificate(self, entry: HeaderEntry):
        if self._is_crl_message():
            logger.debug(f"Skipping {entry.name} in CRL message.")
            return
        originator = self.originator
        if originator is None or originator["variant"] != "asymmetric" or self.recipients or self.pending_recipient:
            raise self._fail_line("Issuer-Certificate must follow an asymmetric originator", entry)
        originator["issuer_certificates"].append(
            Certificate(data=self._base64(entry, (entry.value, 0), "certificate")))
        self.key_info_owner = None

    def _mic_info(self, entry: HeaderEntry):
        parts = self._parts(entry, 3, "<algorithm>,<ik-algorithm>,<signature>")
        mic_info = MICInfo(
            algorithm=self._required(entry, parts[0], "algorithm"),
            ik_algorithm=self._required(entry, parts[1], "IK algorithm"),
            signature=self._base64(entry, parts[2], "signature"),
        )
        self._set_once(entry, "mic_info", mic_info)
        self.key_info_owner = None

    def _close_originator(self) -> Any:
        originator = self.originator
        if originator is None:
            return None
        if originator["variant"] == "symmetric":
            return SymmetricOriginator(id=originator["id"], key_info=originator["key_info"])
        mic_info = self.fields.get("mic_info")
        if mic_info is None:
            raise self._fail_line("asymmetric originator requires a MIC-Info entry", originator["entry"])
        return AsymmetricOriginator(
            id=originator["id"],
            key_info=originator["key_info"],
            issuer_certificates=tuple(originator["issuer_certificates"]),
            mic_info=mic_info,
        )

    # --- recipients ---

    def _open_recipient(self, entry: HeaderEntry, variant: str, recipient_id: Any):
        self._close_recipient()
        self.pending_recipient = {"variant": variant, "entry": entry, "id": recipient_id, "key_info": None}
        self.key_info_owner = "recipient"

    def _close_recipient(self):
        pending = self.pending_recipient
        if pending is None:
            return
        if pending["key_info"] is None:
            raise self._fail_line(f"{pending['entry'].name} must be followed by a Key-Info entry", pending["entry"])
        if pending["variant"] == "asymmetric":
            self.recipients.append(AsymmetricRecipient(id=pending["id"], key_info=pending["key_info"]))
        else:
            self.recipients.append(SymmetricRecipient(id=pending["id"], key_info=pending["key_info"]))
        self.pending_recipient = None

    def _recipient_id_asymmetric(self, entry: HeaderEntry):
        self._open_recipient(entry, "asymmetric", self._asymmetric_id(entry))

    def _recipient_id_symmetric(self, entry: HeaderEntry):
        self._open_recipient(entry, "symmetric", self._symmetric_id(entry))

    def _recipient_certificate(self, entry: HeaderEntry):
        logger.debug(f"Skipping unsupported header entry {entry.name}.")
        self._close_recipient()
        self.key_info_owner = "skip"

    # --- shared shapes ---

    def _asymmetric_id(self, entry: HeaderEntry) -> AsymmetricID:
        parts = self._parts(entry, 2, "<issuer>,<serial>")
        return AsymmetricID(
            issuer=self._required(entry, parts[0], "issuer"),
            serial=self._required(entry, parts[1], "serial number"),
        )

    def _symmetric_id(self, entry: HeaderEntry) -> SymmetricID:
        parts = self._parts(entry, 3, "<entity>,<issuing-authority>,<version>")
        return SymmetricID(
            name=self._required(entry, parts[0], "entity identifier"),
            domain=parts[1][0],
            sequence=parts[2][0],
        )

    def _key_info(self, entry: HeaderEntry):
        owner = self.key_info_owner
        if owner == "skip":
            logger.debug("Skipping Key-Info bound to an unsupported header entry.")
            self.key_info_owner = None
            return
        if owner == "originator":
            target = self.originator
        elif owner == "recipient":
            target = self.pending_recipient
        else:
            raise self._fail_line("Key-Info must directly follow an originator or recipient ID", entry)

        if target["variant"] == "asymmetric":
            parts = self._parts(entry, 2, "<algorithm>,<dek>")
            key_info = KeyInfoAsymmetric(
                algorithm=self._required(entry, parts[0], "algorithm"),
                dek=self._base64(entry, parts[1], "DEK"),
            )
        else:
            parts = self._parts(entry, 4, "<algorithm>,<mic-algorithm>,<dek>,<mic>")
            key_info = KeyInfoSymmetric(
                algorithm=self._required(entry, parts[0], "algorithm"),
                mic_algorithm=self._required(entry, parts[1], "MIC algorithm"),
                dek=self._hex(entry, parts[2], "DEK"),
                mic=self._hex(entry, parts[3], "MIC"),
            )
        target["key_info"] = key_info
        self.key_info_owner = None

    # --- driver ---

    def decode(self, entries: List[HeaderEntry]) -> HeaderBlock:
        if not entries:
            return HeaderBlock()
        first = entries[0]
        if first.name != PROC_TYPE:
            raise self._fail(f"expected Proc-Type as the first header entry, found {first.name!r}",
                             first.name_offset, first.name_offset + len(first.name))
        for entry in entries:
            handler = self.handlers.get(entry.name)
            if handler is None:
                raise self._fail(f"unknown header entry {entry.name!r}",
                                 entry.name_offset, entry.name_offset + len(entry.name))
            handler(entry)
        self._close_recipient()
        originator = self._close_originator()
        return HeaderBlock(
            proc_type=self.fields["proc_type"],
            content_domain=self.fields.get("content_domain"),
            dek_info=self.fields.get("dek_info"),
            originator=originator,
            mic_info=self.fields.get("mic_info"),
            recipients=tuple(self.recipients),
            crl=self.fields.get("crl"),
        )


def parse_headers(source: str, start: int = 0, end: Optional[int] = None) -> HeaderBlock:
    """
    Parses the header section found at source[start:end] into a HeaderBlock.
    An empty section yields an all-absent HeaderBlock. Raises HeaderError
    anchored at the offending entry.
    """
    if end is None:
        end = len(source)
    entries = split_entries(source, start, end)
    return _HeaderDecoder(source).decode(entries)
