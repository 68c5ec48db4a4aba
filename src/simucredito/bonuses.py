"""Static bonus-parameter catalog.

Bono del Buen Pagador (BBP) amounts in PEN, by property-value band and
subtype. Sustainable subtypes only apply to certified ("MiVivienda Verde")
projects.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .config import ZERO

_VALID_FROM = datetime(2024, 1, 1)


class BonusSubtype(str, Enum):
    TRADITIONAL = "TRADITIONAL"
    SUSTAINABLE = "SUSTAINABLE"
    INTEGRATOR = "INTEGRATOR"
    INTEGRATOR_SUSTAINABLE = "INTEGRATOR_SUSTAINABLE"


@dataclass(frozen=True)
class BonusParameter:
    bonus_type: str
    bonus_subtype: BonusSubtype
    min_property_value: Optional[Decimal]
    max_property_value: Optional[Decimal]
    bonus_amount: Decimal
    sustainable_required: bool = False
    active: bool = True
    valid_from: datetime = _VALID_FROM
    valid_until: Optional[datetime] = None
    # Exclusive limit (next band's minimum); takes precedence over max_property_value
    upper_bound: Optional[Decimal] = None

    def is_valid_at(self, moment: datetime) -> bool:
        if not self.active or moment < self.valid_from:
            return False
        return self.valid_until is None or moment <= self.valid_until

    def applies_to(self, property_value: Decimal, sustainable: bool, at: datetime) -> bool:
        if not self.is_valid_at(at):
            return False
        if self.min_property_value is not None and property_value < self.min_property_value:
            return False
        if self.upper_bound is not None:
            if property_value >= self.upper_bound:
                return False
        elif self.max_property_value is not None and property_value > self.max_property_value:
            return False
        return sustainable or not self.sustainable_required


# (min value, max value, traditional, sustainable, integrator, integrator + sustainable)
_BBP_BANDS: tuple[tuple[str, str, str, str, str, str], ...] = (
    ("68800", "98100", "27400", "33700", "31000", "37300"),
    ("98101", "146800", "22800", "29100", "26400", "32700"),
    ("146801", "244600", "20900", "27200", "24500", "30800"),
    ("244601", "362100", "7800", "14100", "11400", "17700"),
    ("362101", "488800", "0", "0", "0", "0"),
)


def _build_catalog() -> tuple[BonusParameter, ...]:
    catalog: list[BonusParameter] = []
    lows = [band[0] for band in _BBP_BANDS]
    for index, (low, high, *amounts) in enumerate(_BBP_BANDS):
        following = lows[index + 1] if index + 1 < len(lows) else None
        for subtype, amount in zip(BonusSubtype, amounts):
            catalog.append(
                BonusParameter(
                    bonus_type="BBP",
                    bonus_subtype=subtype,
                    min_property_value=Decimal(low),
                    max_property_value=Decimal(high),
                    upper_bound=Decimal(following) if following is not None else None,
                    bonus_amount=Decimal(amount),
                    sustainable_required=subtype in (
                        BonusSubtype.SUSTAINABLE, BonusSubtype.INTEGRATOR_SUSTAINABLE
                    ),
                )
            )
    return tuple(catalog)


BONUS_CATALOG: tuple[BonusParameter, ...] = _build_catalog()


def applicable_bonuses(
    bonus_type: str,
    bonus_subtype: Optional[BonusSubtype],
    property_value: Decimal,
    sustainable: bool,
    at: Optional[datetime] = None,
    catalog: tuple[BonusParameter, ...] = BONUS_CATALOG,
) -> list[BonusParameter]:
    """Catalog entries matching type, optional subtype, value band and sustainability."""
    moment = at or datetime.now()
    return [
        p for p in catalog
        if p.bonus_type == bonus_type.upper()
        and (bonus_subtype is None or p.bonus_subtype == BonusSubtype(bonus_subtype))
        and p.applies_to(property_value, sustainable, moment)
    ]


def bbp_subtype(sustainable: bool, integrator: bool) -> BonusSubtype:
    if integrator:
        return BonusSubtype.INTEGRATOR_SUSTAINABLE if sustainable else BonusSubtype.INTEGRATOR
    return BonusSubtype.SUSTAINABLE if sustainable else BonusSubtype.TRADITIONAL


def bbp_amount(
    property_value: Decimal,
    sustainable: bool = False,
    integrator: bool = False,
    at: Optional[datetime] = None,
) -> Decimal:
    """BBP amount for a property; zero outside every band."""
    matches = applicable_bonuses("BBP", bbp_subtype(sustainable, integrator), property_value, sustainable, at)
    return matches[0].bonus_amount if matches else ZERO
