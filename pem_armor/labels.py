# --- File: pem_armor/labels.py ---
"""Well-known PEM labels (the text after BEGIN/END)."""

CERTIFICATE = "CERTIFICATE"
X509_CRL = "X509 CRL"
CERTIFICATE_REQUEST = "CERTIFICATE REQUEST"
PKCS7 = "PKCS7"
CMS = "CMS"
PRIVATE_KEY = "PRIVATE KEY"
ENCRYPTED_PRIVATE_KEY = "ENCRYPTED PRIVATE KEY"
ATTRIBUTE_CERTIFICATE = "ATTRIBUTE CERTIFICATE"
PUBLIC_KEY = "PUBLIC KEY"

# RFC 1421 message label
PRIVACY_ENHANCED_MESSAGE = "PRIVACY-ENHANCED MESSAGE"

__all__ = [
    "CERTIFICATE",
    "X509_CRL",
    "CERTIFICATE_REQUEST",
    "PKCS7",
    "CMS",
    "PRIVATE_KEY",
    "ENCRYPTED_PRIVATE_KEY",
    "ATTRIBUTE_CERTIFICATE",
    "PUBLIC_KEY",
    "PRIVACY_ENHANCED_MESSAGE",
]
