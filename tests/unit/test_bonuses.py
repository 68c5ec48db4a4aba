"""Unit tests for bonuses.py — Bono del Buen Pagador catalog."""
from datetime import datetime
from decimal import Decimal

import pytest

from simucredito.bonuses import (
    BONUS_CATALOG,
    BonusSubtype,
    applicable_bonuses,
    bbp_amount,
    bbp_subtype,
)

NOW = datetime(2025, 6, 1)


class TestCatalog:
    def test_size(self):
        # 5 bands × 4 subtypes
        assert len(BONUS_CATALOG) == 20

    def test_sustainable_flags(self):
        for param in BONUS_CATALOG:
            expected = param.bonus_subtype in (BonusSubtype.SUSTAINABLE, BonusSubtype.INTEGRATOR_SUSTAINABLE)
            assert param.sustainable_required is expected


class TestBBPAmount:
    @pytest.mark.parametrize("value,sustainable,integrator,expected", [
        ("80000", False, False, "27400"),
        ("80000", True, False, "33700"),
        ("80000", False, True, "31000"),
        ("80000", True, True, "37300"),
        ("100000", False, False, "22800"),
        ("200000", True, True, "30800"),
        ("300000", False, False, "7800"),
        ("400000", False, False, "0"),
    ])
    def test_band_amounts(self, value, sustainable, integrator, expected):
        assert bbp_amount(Decimal(value), sustainable, integrator, NOW) == Decimal(expected)

    @pytest.mark.parametrize("value,expected", [
        ("98100", "27400"),
        ("98101", "22800"),
        ("68800", "27400"),
        ("488800", "0"),
    ])
    def test_band_edges_inclusive(self, value, expected):
        assert bbp_amount(Decimal(value), at=NOW) == Decimal(expected)

    @pytest.mark.parametrize("value,expected", [
        ("98100.50", "27400"),
        ("146800.99", "22800"),
        ("244600.01", "20900"),
        ("362100.5", "7800"),
    ])
    def test_values_between_published_bands(self, value, expected):
        assert bbp_amount(Decimal(value), at=NOW) == Decimal(expected)

    @pytest.mark.parametrize("value", ["50000", "68799", "500000"])
    def test_outside_every_band(self, value):
        assert bbp_amount(Decimal(value), at=NOW) == Decimal("0")

    def test_before_validity(self):
        assert bbp_amount(Decimal("100000"), at=datetime(2023, 1, 1)) == Decimal("0")


class TestApplicableBonuses:
    def test_traditional_property_excludes_sustainable(self):
        matches = applicable_bonuses("BBP", None, Decimal("100000"), False, NOW)
        assert {p.bonus_subtype for p in matches} == {BonusSubtype.TRADITIONAL, BonusSubtype.INTEGRATOR}

    def test_sustainable_property_sees_all_subtypes(self):
        matches = applicable_bonuses("bbp", None, Decimal("100000"), True, NOW)
        assert len(matches) == 4

    def test_subtype_filter(self):
        matches = applicable_bonuses("BBP", "SUSTAINABLE", Decimal("100000"), True, NOW)
        assert [p.bonus_amount for p in matches] == [Decimal("29100")]

    def test_unknown_type(self):
        assert applicable_bonuses("BFH", None, Decimal("100000"), False, NOW) == []


class TestSubtype:
    @pytest.mark.parametrize("sustainable,integrator,expected", [
        (False, False, BonusSubtype.TRADITIONAL),
        (True, False, BonusSubtype.SUSTAINABLE),
        (False, True, BonusSubtype.INTEGRATOR),
        (True, True, BonusSubtype.INTEGRATOR_SUSTAINABLE),
    ])
    def test_subtype(self, sustainable, integrator, expected):
        assert bbp_subtype(sustainable, integrator) is expected
