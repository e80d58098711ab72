# --- File: pem_armor/models.py ---
from enum import Enum
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .codec import b64encode, hexencode
from .errors import RenderError

# --- PEM Data Models (using Pydantic) ---


class PemModel(BaseModel):
    """Base for every PEM value type: immutable once built, bytes dump as base64 in JSON."""
    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")


class ProcTypeKind(str, Enum):
    """`Proc-Type` specifier tokens as they appear on the wire."""
    ENCRYPTED = "ENCRYPTED"
    MIC_ONLY = "MIC-ONLY"
    MIC_CLEAR = "MIC-CLEAR"
    CRL = "CRL"


class ProcType(PemModel):
    """`Proc-Type` header field."""
    version: int = Field(..., ge=0, description="Processing version, 4 for RFC 1421")
    kind: ProcTypeKind = Field(..., description="Processing class of the message")

    def render(self) -> str:
        return f"{self.version},{self.kind.value}"


class DEKInfo(PemModel):
    """`DEK-Info` header field."""
    algorithm: str = Field(..., description="Message encryption algorithm (e.g., DES-CBC)")
    parameter: bytes = Field(b"", description="Hex-decoded algorithm parameter, typically the IV")

    def render(self) -> str:
        if not self.parameter:
            return self.algorithm
        return f"{self.algorithm},{hexencode(self.parameter)}"


class Certificate(PemModel):
    """Certificate carried as a base64 header payload."""
    kind: Literal["certificate"] = "certificate"
    data: bytes = Field(..., description="DER bytes recovered from base64")


class AsymmetricID(PemModel):
    """`Originator-ID-Asymmetric` / `Recipient-ID-Asymmetric` value."""
    kind: Literal["asymmetric_id"] = "asymmetric_id"
    issuer: str = Field(..., description="Encoded issuer name")
    serial: str = Field(..., description="Certificate serial number or key identifier")


class SymmetricID(PemModel):
    """`Originator-ID-Symmetric` / `Recipient-ID-Symmetric` value."""
    name: str = Field(..., description="Entity identifier")
    domain: str = Field("", description="Issuing authority")
    sequence: str = Field("", description="Version/expiration")


class KeyInfoAsymmetric(PemModel):
    """`Key-Info` following an asymmetric ID."""
    algorithm: str
    dek: bytes = Field(..., description="Encrypted DEK, base64 on the wire")


class KeyInfoSymmetric(PemModel):
    """`Key-Info` following a symmetric ID."""
    algorithm: str
    mic_algorithm: str
    dek: bytes = Field(b"", description="Encrypted DEK, hex on the wire")
    mic: bytes = Field(b"", description="Encrypted MIC, hex on the wire")


class MICInfo(PemModel):
    """`MIC-Info` header field."""
    algorithm: str
    ik_algorithm: str
    signature: bytes = Field(..., description="Signed MIC, base64 on the wire")


class AsymmetricOriginator(PemModel):
    kind: Literal["asymmetric"] = "asymmetric"
    id: Annotated[Union[AsymmetricID, Certificate], Field(discriminator="kind")]
    key_info: Optional[KeyInfoAsymmetric] = None
    issuer_certificates: Tuple[Certificate, ...] = ()
    mic_info: MICInfo


class SymmetricOriginator(PemModel):
    kind: Literal["symmetric"] = "symmetric"
    id: SymmetricID
    key_info: Optional[KeyInfoSymmetric] = None


Originator = Annotated[Union[AsymmetricOriginator, SymmetricOriginator], Field(discriminator="kind")]


class AsymmetricRecipient(PemModel):
    kind: Literal["asymmetric"] = "asymmetric"
    id: AsymmetricID
    key_info: KeyInfoAsymmetric


class SymmetricRecipient(PemModel):
    kind: Literal["symmetric"] = "symmetric"
    id: SymmetricID
    key_info: KeyInfoSymmetric


Recipient = Annotated[Union[AsymmetricRecipient, SymmetricRecipient], Field(discriminator="kind")]


class HeaderBlock(PemModel):
    """
    Decoded encapsulated header section.

    `proc_type` gates everything else: without it the block renders to
    nothing. Only Proc-Type, Content-Domain and DEK-Info are rendered; the
    originator/recipient fields are populated by the decoder but never
    written back out.
    """
    proc_type: Optional[ProcType] = None
    content_domain: Optional[str] = None
    dek_info: Optional[DEKInfo] = None
    originator: Optional[Originator] = None
    mic_info: Optional[MICInfo] = None
    recipients: Tuple[Recipient, ...] = ()
    crl: Optional[bytes] = Field(None, description="CRL payload from a Proc-Type CRL message")

    def render(self) -> str:
        """Renders the header lines, each newline-terminated, or '' without a Proc-Type."""
        if self.proc_type is None:
            return ""
        lines = [f"Proc-Type: {self.proc_type.render()}"]
        if self.content_domain is not None:
            lines.append(f"Content-Domain: {self.content_domain}")
        if self.dek_info is not None:
            lines.append(f"DEK-Info: {self.dek_info.render()}")
        return "".join(line + "\n" for line in lines)


class Message(PemModel):
    """
    A single PEM block: label, header section and decoded content.
    All fields default (empty label, empty headers, empty content) so a
    message can be assembled in one call from whichever parts are known.
    """
    label: str = Field("", description="Text between BEGIN/END and the closing dashes")
    headers: HeaderBlock = Field(default_factory=HeaderBlock)
    content: bytes = Field(b"", description="Binary payload")

    @classmethod
    def parse(cls, text: str) -> "Message":
        from .parser import parse
        return parse(text)

    def render(self) -> str:
        """Renders canonical PEM text. Raises RenderError for an empty label."""
        if not self.label:
            raise RenderError("cannot render a PEM message with an empty label")
        out = [f"-----BEGIN {self.label}-----\n"]
        header_text = self.headers.render()
        if header_text:
            out.append(header_text)
            out.append("\n")
        out.append(b64encode(self.content))
        out.append(f"-----END {self.label}-----")
        return "".join(out)
