"""
HMAC Message Signing

Signature = base64(HMAC-SHA256(key, message))

Two keyings share the same primitive:
- session signature: sign(username + "\\n" + timestamp, server_secret)
- request signature: sign(method + "\\n" + path + "\\n" + body_hash, session_signature)

The body hash is MD5 hex. It only ever appears inside the HMAC-signed
message, so MD5 collisions do not let anyone forge a request signature.
Changing the hash would break every existing client.
"""

import base64
import hashlib
import hmac


def sign(message: str, key: str) -> str:
    """
    Compute an HMAC-SHA256 signature

    Args:
        message: Text to sign (UTF-8 encoded before hashing)
        key: HMAC key (server secret or session signature)

    Returns:
        Standard base64 encoding of the raw digest
    """
    digest = hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def body_hash(body: bytes | None) -> str:
    """Lowercase MD5 hex of the body, or "" when there is no body."""
    if not body:
        return ""
    return hashlib.md5(body).hexdigest()


def canonical_message(method: str, path: str, body_digest: str) -> str:
    return f"{method}\n{path}\n{body_digest}"


def session_signature(secret: str, username: str, timestamp: int) -> str:
    """Derive the per-session key from the server secret."""
    return sign(f"{username}\n{timestamp}", secret)


def request_signature(session_sig: str, method: str, path: str, body: bytes | None = None) -> str:
    """Sign one request with a session signature, as a client does."""
    return sign(canonical_message(method, path, body_hash(body)), session_sig)


def signatures_match(expected: str, presented: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))
