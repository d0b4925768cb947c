"""
Deposit plugin configuration schema.

``DepositConfiguration`` is the per-tenant document (minimum deposit amount
per currency).  ``PluginSettings`` is the process-level configuration
(database, logging).  Both are frozen; a tenant configuration change produces
a new ``DepositConfiguration`` rather than mutating the old one.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType


def _frozen_amounts(amounts: Mapping[str, Decimal] | None) -> Mapping[str, Decimal]:
    return MappingProxyType(dict(amounts or {}))


@dataclass(frozen=True)
class DepositConfiguration:
    """Per-tenant minimum deposit amounts, keyed by ISO 4217 currency code."""

    min_amounts: Mapping[str, Decimal] = field(default_factory=lambda: _frozen_amounts(None))

    def __post_init__(self) -> None:
        # Always hold a read-only copy, whatever mapping the caller passed in.
        object.__setattr__(self, "min_amounts", _frozen_amounts(self.min_amounts))

    def minimum_for(self, currency: str) -> Decimal | None:
        return self.min_amounts.get(currency)

    @classmethod
    def empty(cls) -> DepositConfiguration:
        return cls()


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite:///./deposit.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5


@dataclass(frozen=True)
class PluginSettings:
    """Process-level settings for the plugin and its HTTP surface."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    log_level: str = "INFO"
    create_tables: bool = True
