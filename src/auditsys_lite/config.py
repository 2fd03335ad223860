"""Runtime settings for a ledger session.

Defaults mirror the audit console's system settings: a $1000 anomaly
threshold and a five-second simulation tick. Values can come from
AUDITSYS_* environment variables; command-line flags override both.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, fields, replace
from decimal import Decimal, InvalidOperation
from os import environ
from typing import Any, Mapping

from auditsys_lite.domain.errors import ConfigurationError

ENV_PREFIX = "AUDITSYS_"


@dataclass(frozen=True)
class LedgerSettings:
    transaction_threshold: Decimal = Decimal("1000")
    high_risk_cutoff: int = 75
    simulation_interval: float = 5.0
    hash_algorithm: str = "sha256"
    notification_link: str = "/ledger"

    def validate(self) -> None:
        """Raise ConfigurationError describing the first invalid field."""
        if self.transaction_threshold < 0:
            raise ConfigurationError("transaction_threshold must be >= 0")
        if not 0 <= self.high_risk_cutoff <= 100:
            raise ConfigurationError("high_risk_cutoff must be between 0 and 100")
        if not self.simulation_interval > 0:
            raise ConfigurationError("simulation_interval must be > 0")
        if self.hash_algorithm not in hashlib.algorithms_available:
            raise ConfigurationError(
                f"hash_algorithm {self.hash_algorithm!r} is not available"
            )
        if not self.notification_link.strip():
            raise ConfigurationError("notification_link must not be blank")

    def with_overrides(self, **overrides: Any) -> LedgerSettings:
        """Copy with the non-None overrides applied, then validated."""
        applied = {k: v for k, v in overrides.items() if v is not None}
        updated = replace(self, **applied)
        updated.validate()
        return updated

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> LedgerSettings:
        """Build settings from AUDITSYS_<FIELD> variables, validated."""
        source = environ if env is None else env
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = source.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _COERCERS[f.name](raw, f.name)
        settings = cls(**values)
        settings.validate()
        return settings


def _coerce_decimal(value: str, field: str) -> Decimal:
    try:
        parsed = Decimal(value.strip())
    except InvalidOperation as exc:
        raise ConfigurationError(f"Invalid decimal for {field}: {value}") from exc
    if not parsed.is_finite():
        raise ConfigurationError(f"Invalid decimal for {field}: {value}")
    return parsed


def _coerce_int(value: str, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid integer for {field}: {value}") from exc


def _coerce_float(value: str, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid number for {field}: {value}") from exc


def _coerce_str(value: str, field: str) -> str:
    return value.strip()


_COERCERS = {
    "transaction_threshold": _coerce_decimal,
    "high_risk_cutoff": _coerce_int,
    "simulation_interval": _coerce_float,
    "hash_algorithm": _coerce_str,
    "notification_link": _coerce_str,
}
