import hashlib
import hmac

from .errors import AuthError

SIGNATURE_HEADER = "HTTP_X_IMPORT_SIGNATURE"
SIGNATURE_PREFIX = "sha256="


def sign_body(secret: str, body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(secret: str, body: bytes, signature: str) -> None:
    """Raise ``AuthError`` unless ``signature`` is the HMAC-SHA256 of ``body`` under ``secret``."""
    if not signature:
        raise AuthError("Missing signature")
    if not hmac.compare_digest(sign_body(secret, body), signature.strip()):
        raise AuthError("Invalid signature")
