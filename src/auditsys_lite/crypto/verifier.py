"""Chain verification with content/linkage tamper classification.

The ChainVerifier walks entries oldest-first and recomputes every hash
from the stored fields. For each entry it checks two things, in order:

1. Content: does the stored hash match a fresh digest of the entry's own
   sealed fields (including its stored previous_hash)? If not, the entry
   was edited after sealing.
2. Linkage: does the stored previous_hash equal the hash of the entry
   before it (the genesis sentinel for the first)? If not, something
   upstream was removed, inserted or reordered.

The walk stops at the first failure. Display order is irrelevant: callers
pass the chain oldest-first, or hand over a store and let verify_store()
take a snapshot. Verification never writes to a store.

Two ways to run it:
- verify(entries): one pass over the whole chain.
- verify_chunk(entries, checkpoint, max_entries): a bounded slice that
  can be resumed from the returned checkpoint. Running all chunks in
  sequence gives the same outcome as verify().
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from auditsys_lite.crypto.hasher import HashAdapter
from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.store.base import LedgerStoreBase

log = logging.getLogger(__name__)


class ViolationKind(Enum):
    CONTENT = "content"
    LINKAGE = "linkage"


_VIOLATION_REASONS: dict[ViolationKind, str] = {
    ViolationKind.CONTENT: "content altered after sealing (hash mismatch)",
    ViolationKind.LINKAGE: (
        "chain broken or reordered (previous hash does not match predecessor)"
    ),
}


@dataclass(frozen=True, slots=True)
class ScanCheckpoint:
    """Where a chunked scan stopped: the next position and the hash it must link to."""

    position: int
    expected_previous: str
    entries_verified: int = 0


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Outcome of a verification run.

    ok is True only when every scanned entry passed. A chunked scan that
    has entries left sets checkpoint; ok then means "valid so far".
    """

    ok: bool
    entries_verified: int
    first_broken_entry_id: str | None = None
    violation_kind: ViolationKind | None = None
    position: int | None = None
    expected_hash: str | None = None
    actual_hash: str | None = None
    checkpoint: ScanCheckpoint | None = None

    @property
    def complete(self) -> bool:
        """True when no further chunk needs to run."""
        return self.checkpoint is None

    def to_dict(self) -> dict[str, Any]:
        """Wire form with exactly the three public fields."""
        return {
            "ok": self.ok,
            "firstBrokenEntryId": self.first_broken_entry_id,
            "violationKind": (
                self.violation_kind.value if self.violation_kind is not None else None
            ),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def describe(self) -> str:
        """Human-readable status line for display collaborators."""
        if self.ok:
            if not self.complete:
                return (
                    f"Verification in progress: {self.entries_verified} "
                    f"entries verified so far."
                )
            return (
                f"Ledger integrity verified: {self.entries_verified} entries "
                f"are cryptographically linked and untampered."
            )
        reason = _VIOLATION_REASONS[self.violation_kind]
        return (
            f"Verification failed at entry {self.first_broken_entry_id} "
            f"(position {self.position}): {reason}."
        )


class ChainVerifier:
    """Verifies sequences of ledger entries.

    Uses the same HashAdapter (algorithm and key) the entries were sealed
    with; a mismatched adapter reports a content violation at position 0.
    """

    def __init__(self, hasher: HashAdapter | None = None) -> None:
        self._hasher = hasher or HashAdapter()

    @property
    def hasher(self) -> HashAdapter:
        return self._hasher

    def verify(self, entries_oldest_first: Sequence[LedgerEntry]) -> VerificationResult:
        """Verify the full chain from genesis to head.

        Time complexity: O(n) digests.
        """
        result = self.verify_chunk(entries_oldest_first)
        _log_outcome(result)
        return result

    def verify_store(self, store: LedgerStoreBase) -> VerificationResult:
        """Verify a point-in-time snapshot of a store."""
        return self.verify(store.all_oldest_first())

    def verify_chunk(
        self,
        entries_oldest_first: Sequence[LedgerEntry],
        checkpoint: ScanCheckpoint | None = None,
        max_entries: int | None = None,
    ) -> VerificationResult:
        """Verify up to max_entries entries, starting at checkpoint.

        With no checkpoint the scan starts at position 0 against the
        genesis sentinel. With no max_entries it runs to the end.

        Raises ValueError for a checkpoint past the end of the sequence
        or a non-positive max_entries.
        """
        if max_entries is not None and max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        if checkpoint is None:
            checkpoint = ScanCheckpoint(position=0, expected_previous=self._hasher.genesis)
        total = len(entries_oldest_first)
        if checkpoint.position < 0 or checkpoint.position > total:
            raise ValueError(
                f"Checkpoint position {checkpoint.position} out of range "
                f"for chain of length {total}"
            )

        stop = total
        if max_entries is not None:
            stop = min(total, checkpoint.position + max_entries)

        expected_previous = checkpoint.expected_previous
        verified = checkpoint.entries_verified

        for position in range(checkpoint.position, stop):
            entry = entries_oldest_first[position]

            recomputed = self._hasher.hash_entry(entry)
            if recomputed != entry.hash:
                return VerificationResult(
                    ok=False,
                    entries_verified=verified,
                    first_broken_entry_id=entry.entry_id,
                    violation_kind=ViolationKind.CONTENT,
                    position=position,
                    expected_hash=recomputed,
                    actual_hash=entry.hash,
                )

            if entry.previous_hash != expected_previous:
                return VerificationResult(
                    ok=False,
                    entries_verified=verified,
                    first_broken_entry_id=entry.entry_id,
                    violation_kind=ViolationKind.LINKAGE,
                    position=position,
                    expected_hash=expected_previous,
                    actual_hash=entry.previous_hash,
                )

            expected_previous = entry.hash
            verified += 1

        next_checkpoint = None
        if stop < total:
            next_checkpoint = ScanCheckpoint(
                position=stop,
                expected_previous=expected_previous,
                entries_verified=verified,
            )
        return VerificationResult(
            ok=True,
            entries_verified=verified,
            checkpoint=next_checkpoint,
        )

    def verify_in_chunks(
        self,
        entries_oldest_first: Sequence[LedgerEntry],
        chunk_size: int,
    ) -> VerificationResult:
        """Run verify_chunk repeatedly until the chain is done or broken."""
        result = self.verify_chunk(entries_oldest_first, max_entries=chunk_size)
        while result.ok and not result.complete:
            log.debug("Verified %d entries, resuming", result.entries_verified)
            result = self.verify_chunk(
                entries_oldest_first,
                checkpoint=result.checkpoint,
                max_entries=chunk_size,
            )
        _log_outcome(result)
        return result


def _log_outcome(result: VerificationResult) -> None:
    if result.ok:
        log.info("Ledger verified: %d entries", result.entries_verified)
    else:
        log.warning(
            "Ledger verification failed at %s (position %s): %s",
            result.first_broken_entry_id,
            result.position,
            result.violation_kind.value if result.violation_kind else None,
        )
