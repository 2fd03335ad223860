"""Cryptographic ledger core -- hashing, sealing, verification.

Public API:
    HashAdapter: canonical serialization + SHA-256 (or HMAC) digest
    EntryFactory: seals source events into chained LedgerEntry objects
    ChainVerifier: oldest-first verification with content/linkage results
    VerificationResult, ViolationKind, ScanCheckpoint: verification outcome
    TamperSimulator: demo fixture that corrupts an entry without rehashing
"""

from auditsys_lite.crypto.factory import EntryFactory
from auditsys_lite.crypto.hasher import (
    DEFAULT_ALGORITHM,
    GENESIS_SENTINEL,
    HashAdapter,
    canonicalize,
    generate_secret_key,
)
from auditsys_lite.crypto.tamper import TamperSimulator
from auditsys_lite.crypto.verifier import (
    ChainVerifier,
    ScanCheckpoint,
    VerificationResult,
    ViolationKind,
)

__all__ = [
    "DEFAULT_ALGORITHM",
    "GENESIS_SENTINEL",
    "ChainVerifier",
    "EntryFactory",
    "HashAdapter",
    "ScanCheckpoint",
    "TamperSimulator",
    "VerificationResult",
    "ViolationKind",
    "canonicalize",
    "generate_secret_key",
]
