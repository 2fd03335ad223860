"""Hash adapter: canonical serialization plus a standard digest.

Canonicalization turns an ordered tuple of text fields into one
deterministic byte string. Each field is UTF-8 encoded and prefixed
with its 4-byte big-endian length, so the encoding is injective: the
fields ("ab", "c") and ("a", "bc") produce different bytes, which a
plain concatenation would not. Amounts and timestamps reach this module
already rendered as fixed-point / fixed-format text (see
domain.ledger_entry), so no float formatting ever enters the hash input.

Two modes:
- Plain digest (SHA-256 by default). Anyone holding the ledger can
  recompute hashes, so tamper evidence relies on a trusted copy of some
  hash (the genesis sentinel, or a published head).
- Keyed digest (HMAC over the same bytes). Recomputing a forged chain
  additionally requires the secret key.
"""
from __future__ import annotations

import hashlib
import hmac
import os
import struct
from typing import Sequence

from auditsys_lite.domain.errors import ConfigurationError
from auditsys_lite.domain.ledger_entry import LedgerEntry

DEFAULT_ALGORITHM = "sha256"

# previous_hash of the first entry: one zero per hex digit of the digest.
# Not the SHA-256 of empty input (that is e3b0c442...).
GENESIS_SENTINEL: str = "0" * 64


def _lp(data: bytes) -> bytes:
    """Length-prefix a byte string with a 4-byte big-endian length."""
    return struct.pack("!I", len(data)) + data


def canonicalize(ordered_fields: Sequence[str]) -> bytes:
    """Encode fields in the given order. The order must never change."""
    return b"".join(_lp(field.encode("utf-8")) for field in ordered_fields)


class HashAdapter:
    """Deterministic digest over canonicalized fields.

    Construction fails with ConfigurationError when the requested
    algorithm is not available in this interpreter's hashlib. That is a
    startup problem, not something to retry at append time.
    """

    __slots__ = ("_algorithm", "_secret_key", "_hex_length")

    def __init__(
        self,
        algorithm: str = DEFAULT_ALGORITHM,
        secret_key: bytes | None = None,
    ) -> None:
        try:
            sample = hashlib.new(algorithm)
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(
                f"Hash algorithm {algorithm!r} is not available: {exc}"
            ) from exc
        if sample.digest_size == 0:
            # shake_* report a zero digest_size; they need an explicit length
            raise ConfigurationError(
                f"Hash algorithm {algorithm!r} has no fixed digest length"
            )
        if secret_key is not None and not secret_key:
            raise ConfigurationError("HMAC secret key must not be empty")
        self._algorithm = algorithm
        self._secret_key = secret_key
        self._hex_length = sample.digest_size * 2

    @classmethod
    def with_hmac(
        cls,
        secret_key: bytes | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> HashAdapter:
        """Keyed adapter. Generates a random 32-byte key if none is given."""
        if secret_key is None:
            secret_key = generate_secret_key()
        return cls(algorithm=algorithm, secret_key=secret_key)

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def secret_key(self) -> bytes | None:
        return self._secret_key

    @property
    def hex_length(self) -> int:
        return self._hex_length

    @property
    def genesis(self) -> str:
        """Genesis sentinel matching this digest's hex length."""
        return "0" * self._hex_length

    def digest(self, ordered_fields: Sequence[str]) -> str:
        """Hex digest of canonicalize(ordered_fields)."""
        canonical = canonicalize(ordered_fields)
        if self._secret_key is not None:
            return hmac.new(self._secret_key, canonical, self._algorithm).hexdigest()
        return hashlib.new(self._algorithm, canonical).hexdigest()

    def hash_entry(self, entry: LedgerEntry) -> str:
        """Recompute an entry's hash from its stored sealed fields."""
        return self.digest(entry.sealed_fields())


def generate_secret_key() -> bytes:
    """32 random bytes from the OS CSPRNG, for keyed mode."""
    return os.urandom(32)
