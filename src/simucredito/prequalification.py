"""Subsidy pre-qualification (Techo Propio, MiVivienda / BBP, Bono Integrador).

Rules run in a fixed order and each one appends its paragraph to the
recommendation:

1. Techo Propio (BFH): family income within the ceiling, no other property,
   no previous state support.
2. MiVivienda / BBP: family income at or above the bank's floor makes the
   client credit-eligible; the BBP also needs no other property.
3. Bono Integrador: eligible clients aged 60+ or holding a CONADIS card.
4. Sustainability tip for every eligible client.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from .config import (
    BFH_MAX_MONTHLY_INCOME_KEY, DEFAULT_BFH_MAX_MONTHLY_INCOME, MIN_INCOME_FOR_CREDIT,
    SENIOR_AGE, ZERO,
)
from .parameters import GlobalValueStore

logger = logging.getLogger(__name__)


class EligibilityStatus(str, Enum):
    ELIGIBLE = "ELIGIBLE"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    REQUIRES_PROPERTY_EVALUATION = "REQUIRES_PROPERTY_EVALUATION"


@dataclass(frozen=True)
class PreQualificationInput:
    monthly_income: Decimal
    family_net_income: Decimal
    age: int
    applies_for_integrator_bonus: bool = False
    is_owner_of_another_property: bool = False
    has_received_previous_support: bool = False
    conadis_card_number: Optional[str] = None

    @property
    def has_disability_card(self) -> bool:
        return bool(self.conadis_card_number and self.conadis_card_number.strip())

    @classmethod
    def from_household(
        cls,
        holder_income: Optional[Decimal],
        spouse_income: Optional[Decimal],
        birth_date: Optional[date],
        today: date,
        **flags,
    ) -> "PreQualificationInput":
        """Build the input from a holder (and optional spouse).

        Family income is the sum of both incomes; age is the difference of
        calendar years, 0 when the birth date is unknown.
        """
        holder = holder_income if holder_income is not None else ZERO
        family = holder + (spouse_income if spouse_income is not None else ZERO)
        age = today.year - birth_date.year if birth_date is not None else 0
        return cls(monthly_income=holder, family_net_income=family, age=age, **flags)


@dataclass(frozen=True)
class PreQualificationThresholds:
    techo_propio_max_income: Decimal = DEFAULT_BFH_MAX_MONTHLY_INCOME
    min_credit_income: Decimal = MIN_INCOME_FOR_CREDIT


@dataclass(frozen=True)
class PreQualificationResult:
    bbp_status: EligibilityStatus
    sustainable_bonus_status: EligibilityStatus
    integrator_bonus_status: EligibilityStatus
    techo_propio_status: EligibilityStatus
    recommendation: str
    is_eligible: bool


def evaluate(
    data: PreQualificationInput,
    thresholds: PreQualificationThresholds = PreQualificationThresholds(),
) -> PreQualificationResult:
    """Run the rule cascade. Pure: no lookups, no I/O."""
    bbp = EligibilityStatus.NOT_ELIGIBLE
    integrator = EligibilityStatus.NOT_ELIGIBLE
    techo_propio = EligibilityStatus.NOT_ELIGIBLE
    is_eligible = False
    parts: list[str] = []

    no_property = not data.is_owner_of_another_property
    no_support = not data.has_received_previous_support

    # 1. Techo Propio
    if data.family_net_income <= thresholds.techo_propio_max_income:
        if no_property and no_support:
            techo_propio = EligibilityStatus.ELIGIBLE
            is_eligible = True
            parts.append(
                "Programa Techo Propio (AVN): cumples con todos los requisitos para el "
                "Bono Familiar Habitacional (BFH), el subsidio más alto del Estado para "
                "comprar tu primera vivienda nueva."
            )
        else:
            reasons = []
            if not no_property:
                reasons.append("figuras como propietario de otra vivienda")
            if not no_support:
                reasons.append("ya has recibido apoyo del Estado anteriormente")
            parts.append(
                "Observación Techo Propio: tus ingresos califican, pero "
                + " y ".join(reasons)
                + ". Esto te impide acceder al BFH."
            )

    # 2. MiVivienda / BBP
    if data.family_net_income >= thresholds.min_credit_income:
        is_eligible = True
        if no_property:
            bbp = EligibilityStatus.ELIGIBLE
            parts.append(
                "Nuevo Crédito MiVivienda: calificas para un crédito hipotecario con el "
                "Bono del Buen Pagador (BBP), que reduce la cuota inicial o el monto a financiar."
            )
        else:
            parts.append(
                "Nuevo Crédito MiVivienda: cuentas con capacidad para un crédito hipotecario, "
                "pero al tener una propiedad registrada no aplicas al BBP; sí puedes acceder "
                "a las tasas preferenciales del fondo."
            )
    else:
        parts.append(
            "Análisis financiero: tus ingresos podrían ser insuficientes para un crédito "
            "hipotecario bancario. Considera sumar ingresos con un cónyuge o aval."
        )

    # 3. Bono Integrador
    senior = data.age >= SENIOR_AGE
    if is_eligible and (senior or data.has_disability_card):
        integrator = EligibilityStatus.ELIGIBLE
        grounds = []
        if senior:
            grounds.append(f"ser adulto mayor ({SENIOR_AGE}+ años)")
        if data.has_disability_card:
            grounds.append("contar con carnet de CONADIS")
        parts.append(
            "Bono Integrador: por " + " y por ".join(grounds)
            + ", accedes a un descuento adicional sobre el valor de la vivienda."
        )

    # 4. Sustainability tip
    if is_eligible:
        parts.append(
            "Tip de ahorro: si eliges un proyecto certificado MiVivienda Verde (sostenible), "
            "recibirás un bono adicional y una tasa de interés preferencial."
        )

    return PreQualificationResult(
        bbp_status=bbp,
        sustainable_bonus_status=EligibilityStatus.REQUIRES_PROPERTY_EVALUATION,
        integrator_bonus_status=integrator,
        techo_propio_status=techo_propio,
        recommendation="\n\n".join(parts),
        is_eligible=is_eligible,
    )


def resolve_thresholds(store: GlobalValueStore) -> PreQualificationThresholds:
    """Read the Techo Propio ceiling from *store*, falling back to the documented default."""
    ceiling = store.find_numeric_value(BFH_MAX_MONTHLY_INCOME_KEY)
    if ceiling is None:
        logger.warning(
            "%s not configured; using fallback %s", BFH_MAX_MONTHLY_INCOME_KEY, DEFAULT_BFH_MAX_MONTHLY_INCOME
        )
        ceiling = DEFAULT_BFH_MAX_MONTHLY_INCOME
    return PreQualificationThresholds(techo_propio_max_income=ceiling)


def prequalify(data: PreQualificationInput, store: GlobalValueStore) -> PreQualificationResult:
    result = evaluate(data, resolve_thresholds(store))
    logger.info(
        "Pre-qualification: techo_propio=%s bbp=%s integrator=%s eligible=%s",
        result.techo_propio_status.value, result.bbp_status.value,
        result.integrator_bonus_status.value, result.is_eligible,
    )
    return result
