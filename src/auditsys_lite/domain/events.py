"""SourceEvent -- the business event that a ledger entry documents.

Events arrive from outside the core (a sale simulator, an operator action,
an upstream booking system). The core checks only that the financial and
identifying fields are present and well-formed; it does not judge business
semantics such as whether a refund matches an earlier sale.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from auditsys_lite.domain.errors import PreconditionViolation
from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.domain.types import CENTS, ActorId, SubjectId


def coerce_amount(value: Any) -> Decimal:
    """Convert an incoming amount to a two-digit fixed-point Decimal.

    Amounts are never rounded or defaulted here. A value with more than
    two fractional digits is rejected so that the stored amount is exactly
    what the caller meant.
    """
    if value is None:
        raise PreconditionViolation("amount", "is required")
    if isinstance(value, bool):
        raise PreconditionViolation("amount", "must be a number, got bool")
    if isinstance(value, float):
        # repr() gives the shortest round-tripping text, e.g. 0.1 -> "0.1"
        value = repr(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise PreconditionViolation("amount", f"not a number: {value!r}") from None
    if not amount.is_finite():
        raise PreconditionViolation("amount", f"must be finite, got {value!r}")
    if amount < 0:
        raise PreconditionViolation("amount", f"must be non-negative, got {amount}")
    try:
        quantized = amount.quantize(CENTS)
    except InvalidOperation:
        raise PreconditionViolation("amount", f"out of range: {amount}") from None
    if quantized != amount:
        raise PreconditionViolation(
            "amount", f"has more than two fractional digits: {amount}"
        )
    # -0 would seal as "-0.00" and hash apart from an equal 0.00
    return quantized.copy_abs()


def _require_id(field: str, value: Any) -> str:
    if value is None:
        raise PreconditionViolation(field, "is required")
    text = str(value).strip()
    if not text:
        raise PreconditionViolation(field, "must not be blank")
    return text


@dataclass(frozen=True, slots=True)
class SourceEvent:
    """Validated input to the entry factory."""

    kind: EntryKind
    amount: Decimal
    subject_id: SubjectId
    actor_id: ActorId

    @classmethod
    def create(
        cls,
        kind: EntryKind | str | None,
        amount: Any,
        subject_id: Any,
        actor_id: Any,
    ) -> SourceEvent:
        """Validate raw values and build an event.

        Raises PreconditionViolation naming the first offending field.
        """
        if kind is None:
            raise PreconditionViolation("kind", "is required")
        try:
            parsed_kind = EntryKind.parse(kind)
        except ValueError as exc:
            raise PreconditionViolation("kind", str(exc)) from None
        return cls(
            kind=parsed_kind,
            amount=coerce_amount(amount),
            subject_id=_require_id("subject_id", subject_id),
            actor_id=_require_id("actor_id", actor_id),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SourceEvent:
        """Build from a wire payload; accepts camelCase or snake_case keys."""
        return cls.create(
            kind=data.get("kind"),
            amount=data.get("amount"),
            subject_id=data.get("subjectId", data.get("subject_id")),
            actor_id=data.get("actorId", data.get("actor_id")),
        )
