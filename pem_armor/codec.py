# --- File: pem_armor/codec.py ---
"""
Base64 and hex codecs for PEM bodies and header payloads.

Decoding follows the RFC 1421 flavour of base64: the standard alphabet,
`=` padding that may be omitted, and non-zero trailing bits in the last
symbol are masked off instead of rejected. Encoding always pads and wraps
at 64 columns.
"""
import base64
import binascii
import re

from pydantic import BaseModel, ConfigDict, Field

_BASE64_INVALID = re.compile(r"[^A-Za-z0-9+/=]")
_HEX_INVALID = re.compile(r"[^0-9A-Fa-f]")
# Low bits left unused by the last symbol of a 2- or 3-symbol final quantum
_TRAILING_BIT_MASK = {2: 0x0F, 3: 0x03}
_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


class CodecError(ValueError):
    """Raised when base64 or hex text cannot be decoded. `index` points at the failing character."""

    def __init__(self, message: str, index: int = 0):
        super().__init__(message)
        self.index = index


class Base64Policy(BaseModel):
    """Immutable base64 alphabet/padding policy."""
    model_config = ConfigDict(frozen=True)

    line_width: int = Field(64, gt=0, description="Characters per encoded line")
    pad_output: bool = Field(True, description="Emit '=' padding when encoding")
    require_padding: bool = Field(False, description="Reject input whose final quantum lacks '=' padding")
    allow_trailing_bits: bool = Field(True, description="Ignore non-zero unused bits in the last symbol")


RFC1421_POLICY = Base64Policy()


def dewrap(text: str) -> str:
    """Removes line breaks so wrapped base64 can be decoded as one run."""
    return text.replace("\r", "").replace("\n", "")


def b64decode(text: str, policy: Base64Policy = RFC1421_POLICY) -> bytes:
    """
    Decodes (possibly wrapped) base64 text according to `policy`.
    Raises CodecError with the index of the offending character in the
    de-wrapped text.
    """
    compact = dewrap(text)
    bad = _BASE64_INVALID.search(compact)
    if bad:
        raise CodecError(f"invalid base64 character {bad.group()!r}", bad.start())

    data = compact.rstrip("=")
    pad_count = len(compact) - len(data)
    if "=" in data:
        index = data.index("=")
        raise CodecError("padding character '=' before end of data", index)
    if pad_count > 2:
        raise CodecError("too much padding", len(data) + 2)

    remainder = len(data) % 4
    if remainder == 1:
        raise CodecError("invalid base64 length", max(len(data) - 1, 0))
    if pad_count:
        if remainder == 0 or remainder + pad_count != 4:
            raise CodecError("incorrect base64 padding", len(data))
    elif remainder and policy.require_padding:
        raise CodecError("missing base64 padding", len(data))

    if remainder and not policy.allow_trailing_bits:
        last = _ALPHABET.index(data[-1])
        if last & _TRAILING_BIT_MASK[remainder]:
            raise CodecError("non-zero trailing bits in final base64 symbol", len(data) - 1)

    padded = data + "=" * ((4 - remainder) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except binascii.Error as exc:
        raise CodecError(f"invalid base64: {exc}", 0) from exc


def b64encode(data: bytes, policy: Base64Policy = RFC1421_POLICY) -> str:
    """
    Encodes `data` as base64 wrapped at `policy.line_width` columns.
    Every line, including the last short one, ends with a newline; empty
    input produces an empty string.
    """
    encoded = base64.b64encode(data).decode("ascii")
    if not policy.pad_output:
        encoded = encoded.rstrip("=")
    width = policy.line_width
    return "".join(encoded[i:i + width] + "\n" for i in range(0, len(encoded), width))


def hexdecode(text: str) -> bytes:
    """Decodes a hex string. An empty string decodes to empty bytes."""
    bad = _HEX_INVALID.search(text)
    if bad:
        raise CodecError(f"invalid hex character {bad.group()!r}", bad.start())
    if len(text) % 2:
        raise CodecError("odd-length hex string", len(text) - 1)
    return binascii.unhexlify(text)


def hexencode(data: bytes) -> str:
    """Uppercase hex, as used in RFC 1421 headers."""
    return binascii.hexlify(data).decode("ascii").upper()
