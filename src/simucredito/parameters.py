"""Global parameters (income ceilings, subsidy amounts, exchange rate).

Each value carries a validity window. The store is a read-through overlay:
session overrides win over the embedded defaults, and a lookup only sees
values that are active and valid at the requested moment.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from .config import BFH_MAX_MONTHLY_INCOME_KEY, EXCHANGE_RATE_USD_PEN_KEY
from .exceptions import ValueNotFoundError

_EPOCH = datetime(2024, 1, 1)


@dataclass(frozen=True)
class GlobalValue:
    key: str
    name: str
    numeric_value: Optional[Decimal] = None
    string_value: Optional[str] = None
    unit: Optional[str] = None
    active: bool = True
    valid_from: datetime = _EPOCH
    valid_until: Optional[datetime] = None

    def is_valid_at(self, moment: datetime) -> bool:
        if not self.active or moment < self.valid_from:
            return False
        return self.valid_until is None or moment <= self.valid_until


# Embedded defaults, amounts in PEN
_DEFAULTS: tuple[GlobalValue, ...] = (
    GlobalValue("BFH_AVN_AMOUNT", "Bono Familiar Habitacional (BFH) - AVN", Decimal("46545"), unit="PEN"),
    GlobalValue(BFH_MAX_MONTHLY_INCOME_KEY, "Ingreso familiar mensual máximo (BFH)", Decimal("3715"), unit="PEN"),
    GlobalValue("BFH_MAX_PROPERTY_VALUE", "Valor de vivienda máximo (BFH)", Decimal("136000"), unit="PEN"),
    GlobalValue(EXCHANGE_RATE_USD_PEN_KEY, "Tipo de cambio USD/PEN", Decimal("3.75"), unit="PEN"),
)


class GlobalValueStore:
    """Session-scoped lookup of global parameters.

    ``find_*`` methods return None for an absent value; ``get_*`` methods
    raise ValueNotFoundError instead.
    """

    def __init__(self, values: Optional[Iterable[GlobalValue]] = None) -> None:
        self._values: dict[str, GlobalValue] = {
            v.key: v for v in (_DEFAULTS if values is None else values)
        }
        self._overrides: dict[str, GlobalValue] = {}

    def _current(self, key: str, at: Optional[datetime]) -> Optional[GlobalValue]:
        value = self._overrides.get(key) or self._values.get(key)
        if value is None:
            return None
        return value if value.is_valid_at(at or datetime.now()) else None

    def find_numeric_value(self, key: str, at: Optional[datetime] = None) -> Optional[Decimal]:
        value = self._current(key, at)
        return value.numeric_value if value is not None else None

    def find_string_value(self, key: str, at: Optional[datetime] = None) -> Optional[str]:
        value = self._current(key, at)
        return value.string_value if value is not None else None

    def get_numeric_value(self, key: str, at: Optional[datetime] = None) -> Decimal:
        result = self.find_numeric_value(key, at)
        if result is None:
            raise ValueNotFoundError(f"Global value not found: {key}")
        return result

    def get_string_value(self, key: str, at: Optional[datetime] = None) -> str:
        result = self.find_string_value(key, at)
        if result is None:
            raise ValueNotFoundError(f"Global value not found: {key}")
        return result

    def numeric_value_or(self, key: str, default: Decimal, at: Optional[datetime] = None) -> Decimal:
        result = self.find_numeric_value(key, at)
        return default if result is None else result

    def set_numeric_value(self, key: str, value: Decimal) -> None:
        """Override *key* for this session, keeping its name and unit if known."""
        base = self._overrides.get(key) or self._values.get(key)
        if base is None:
            base = GlobalValue(key=key, name=key)
        self._overrides[key] = replace(
            base, numeric_value=value, active=True, valid_from=_EPOCH, valid_until=None
        )

    def is_overridden(self, key: str) -> bool:
        return key in self._overrides

    def keys(self) -> list[str]:
        return sorted(set(self._values) | set(self._overrides))
