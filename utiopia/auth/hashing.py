# =============================================================================
# Passphrase Hashing
# =============================================================================
#
# The engine only ever calls hash() and verify(). The algorithm is policy
# owned by whoever constructs the hasher; the default is salted
# PBKDF2-SHA256 in "salt:hash" format.
#
# =============================================================================

from __future__ import annotations

import hashlib
import logging
import secrets
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class SecretHasher(ABC):
    """Hashing capability for anonymous-author passphrases."""

    @abstractmethod
    def hash(self, plain: str) -> str:
        """Hash a passphrase for storage."""
        pass

    @abstractmethod
    def verify(self, plain: str, hashed: str) -> bool:
        """Check a passphrase against a stored hash."""
        pass


class Pbkdf2SecretHasher(SecretHasher):
    """PBKDF2-SHA256 with a random 32-byte salt."""

    def __init__(self, iterations: int = 100_000):
        self.iterations = iterations

    def _derive(self, plain: str, salt: str) -> str:
        return hashlib.pbkdf2_hmac(
            "sha256",
            plain.encode("utf-8"),
            salt.encode("utf-8"),
            iterations=self.iterations,
        ).hex()

    def hash(self, plain: str) -> str:
        """
        Hash a passphrase.

        Returns: salt:hash format string
        """
        salt = secrets.token_hex(32)
        return f"{salt}:{self._derive(plain, salt)}"

    def verify(self, plain: str, hashed: str) -> bool:
        """Verify a passphrase against its hash."""
        try:
            salt, stored_hash = hashed.split(":")
        except (ValueError, AttributeError):
            logger.warning("Malformed passphrase hash")
            return False
        return secrets.compare_digest(self._derive(plain, salt), stored_hash)
