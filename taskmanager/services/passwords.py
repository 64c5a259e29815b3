"""
Password hashing primitive.

Two opaque operations: `hash_password(secret) -> digest` and
`verify_password(secret, digest) -> bool`, backed by bcrypt.

bcrypt only reads the first 72 bytes of a secret (newer releases raise
instead of truncating), so secrets are cut to 72 UTF-8 bytes on both paths.
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def _encode(secret: str) -> bytes:
    return secret.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(secret: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_encode(secret), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(secret: str, digest: str) -> bool:
    """False for a wrong secret and for a digest bcrypt cannot parse."""
    try:
        return bcrypt.checkpw(_encode(secret), digest.encode("ascii"))
    except ValueError:
        logger.warning("Stored password digest is not a valid bcrypt hash")
        return False
