"""Fiscal code tables used when building gateway payloads.

Each table is an enum plus a total mapping function. Values missing from the
stored record fall back to an explicit, documented default.
"""

from __future__ import annotations

from enum import Enum


class IcmsOrigin(str, Enum):
    NATIONAL = "nacional"
    FOREIGN_DIRECT_IMPORT = "estrangeira_importacao"
    FOREIGN_DOMESTIC_MARKET = "estrangeira_mercado_interno"
    NATIONAL_IMPORT_40_70 = "nacional_importado_40_70"
    NATIONAL_BASIC_PROCESSES = "nacional_processos"
    NATIONAL_IMPORT_UNDER_40 = "nacional_importado_70"
    FOREIGN_NO_SIMILAR_DIRECT = "estrangeira_sem_similar"
    FOREIGN_NO_SIMILAR_DOMESTIC = "estrangeira_adquirida_mercado"
    NATIONAL_IMPORT_OVER_70 = "nacional_importado_70_substituido"


_ICMS_ORIGIN_CODES = {
    IcmsOrigin.NATIONAL: "0",
    IcmsOrigin.FOREIGN_DIRECT_IMPORT: "1",
    IcmsOrigin.FOREIGN_DOMESTIC_MARKET: "2",
    IcmsOrigin.NATIONAL_IMPORT_40_70: "3",
    IcmsOrigin.NATIONAL_BASIC_PROCESSES: "4",
    IcmsOrigin.NATIONAL_IMPORT_UNDER_40: "5",
    IcmsOrigin.FOREIGN_NO_SIMILAR_DIRECT: "6",
    IcmsOrigin.FOREIGN_NO_SIMILAR_DOMESTIC: "7",
    IcmsOrigin.NATIONAL_IMPORT_OVER_70: "8",
}


class BuyerPresence(str, Enum):
    NOT_APPLICABLE = "nao_se_aplica"
    IN_PERSON = "presencial"
    INTERNET = "internet"
    TELESALES = "televendas"
    HOME_DELIVERY = "entrega_domicilio"
    IN_PERSON_OFF_SITE = "presencial_fora"
    OTHER = "outros"


_BUYER_PRESENCE_CODES = {
    BuyerPresence.NOT_APPLICABLE: 0,
    BuyerPresence.IN_PERSON: 1,
    BuyerPresence.INTERNET: 2,
    BuyerPresence.TELESALES: 3,
    BuyerPresence.HOME_DELIVERY: 4,
    BuyerPresence.IN_PERSON_OFF_SITE: 5,
    BuyerPresence.OTHER: 9,
}


class EmissionPurpose(str, Enum):
    NORMAL = "normal"
    COMPLEMENTARY = "complementar"
    ADJUSTMENT = "ajuste"
    RETURN = "devolucao"


_EMISSION_PURPOSE_CODES = {
    EmissionPurpose.NORMAL: 1,
    EmissionPurpose.COMPLEMENTARY: 2,
    EmissionPurpose.ADJUSTMENT: 3,
    EmissionPurpose.RETURN: 4,
}

# Simples Nacional defaults.
DEFAULT_CSOSN = "102"
DEFAULT_PIS_COFINS_CST = "99"
DEFAULT_UNIT = "UN"
DEFAULT_NCM = "00000000"

# Payment method "90" is "sem pagamento / outros" in the NF-e layout.
PAYMENT_METHOD_OTHER = "90"

CFOP_SALE_INTRASTATE = "5102"
CFOP_SALE_INTERSTATE = "6102"
CFOP_SALE_TAX_SUBSTITUTION_INTRASTATE = "5405"
CFOP_SALE_TAX_SUBSTITUTION_INTERSTATE = "6405"

# ICMS already collected by tax substitution (CST 60 / CSOSN 500).
TAX_SUBSTITUTION_CODES = frozenset({"60", "500"})


def icms_origin_code(value: str | None) -> str:
    """Origin code for a stored origin label. Missing or unknown -> "0" (national)."""

    try:
        return _ICMS_ORIGIN_CODES[IcmsOrigin(value or IcmsOrigin.NATIONAL.value)]
    except ValueError:
        return "0"


def buyer_presence_code(value: str | None) -> int:
    """Presence indicator. Missing or unknown -> 0 (not applicable)."""

    try:
        return _BUYER_PRESENCE_CODES[BuyerPresence(value or BuyerPresence.NOT_APPLICABLE.value)]
    except ValueError:
        return 0


def emission_purpose_code(value: str | None) -> int:
    """Emission purpose. Missing or unknown -> 1 (normal)."""

    try:
        return _EMISSION_PURPOSE_CODES[EmissionPurpose(value or EmissionPurpose.NORMAL.value)]
    except ValueError:
        return 1


def is_same_state(issuer_uf: str | None, recipient_uf: str | None) -> bool:
    return (issuer_uf or "").strip().upper() == (recipient_uf or "").strip().upper()


def has_tax_substitution(icms_cst: str | None) -> bool:
    return (icms_cst or "").strip() in TAX_SUBSTITUTION_CODES


def sale_cfop(*, same_state: bool, tax_substitution: bool = False) -> str:
    if same_state:
        return CFOP_SALE_TAX_SUBSTITUTION_INTRASTATE if tax_substitution else CFOP_SALE_INTRASTATE
    return CFOP_SALE_TAX_SUBSTITUTION_INTERSTATE if tax_substitution else CFOP_SALE_INTERSTATE
