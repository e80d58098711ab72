# pem_armor/__init__.py

"""
PEM Armor (RFC 1421 / RFC 7468 encapsulation)
Decodes and encodes the PEM text envelope:
- BEGIN/END boundary parsing with positioned errors
- RFC 1421 encapsulated headers (Proc-Type, Content-Domain, DEK-Info and
  the originator/recipient/MIC fields), including folded header lines
- RFC 1421 base64 bodies, re-encoded at 64 columns
"""
from . import labels
from .errors import ContentError, EnvelopeError, HeaderError, ParseError, PemError, RenderError
from .models import (
    AsymmetricID, AsymmetricOriginator, AsymmetricRecipient, Certificate, DEKInfo, HeaderBlock,
    KeyInfoAsymmetric, KeyInfoSymmetric, Message, MICInfo, Originator, ProcType, ProcTypeKind,
    Recipient, SymmetricID, SymmetricOriginator, SymmetricRecipient,
)
from .parser import parse

__all__ = [
    "parse",
    "labels",
    "Message",
    "HeaderBlock",
    "ProcType",
    "ProcTypeKind",
    "DEKInfo",
    "Certificate",
    "AsymmetricID",
    "SymmetricID",
    "KeyInfoAsymmetric",
    "KeyInfoSymmetric",
    "MICInfo",
    "Originator",
    "AsymmetricOriginator",
    "SymmetricOriginator",
    "Recipient",
    "AsymmetricRecipient",
    "SymmetricRecipient",
    "PemError",
    "ParseError",
    "EnvelopeError",
    "HeaderError",
    "ContentError",
    "RenderError",
]
