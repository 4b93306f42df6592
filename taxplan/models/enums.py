"""Enumerations for taxplan."""

from enum import StrEnum


class FilingStatus(StrEnum):
    SINGLE = "SINGLE"
    MFJ = "MARRIED_FILING_JOINTLY"
    MFS = "MARRIED_FILING_SEPARATELY"
    HOH = "HEAD_OF_HOUSEHOLD"


class EntityType(StrEnum):
    SOLE_PROP = "SOLE_PROP"
    S_CORP = "S_CORP"
    C_CORP = "C_CORP"
    PARTNERSHIP = "PARTNERSHIP"
    LLC = "LLC"
    UNKNOWN = "UNKNOWN"


class StateCode(StrEnum):
    AL = "AL"
    AK = "AK"
    AZ = "AZ"
    AR = "AR"
    CA = "CA"
    CO = "CO"
    CT = "CT"
    DE = "DE"
    FL = "FL"
    GA = "GA"
    HI = "HI"
    ID = "ID"
    IL = "IL"
    IN = "IN"
    IA = "IA"
    KS = "KS"
    KY = "KY"
    LA = "LA"
    ME = "ME"
    MD = "MD"
    MA = "MA"
    MI = "MI"
    MN = "MN"
    MS = "MS"
    MO = "MO"
    MT = "MT"
    NE = "NE"
    NV = "NV"
    NH = "NH"
    NJ = "NJ"
    NM = "NM"
    NY = "NY"
    NC = "NC"
    ND = "ND"
    OH = "OH"
    OK = "OK"
    OR = "OR"
    PA = "PA"
    RI = "RI"
    SC = "SC"
    SD = "SD"
    TN = "TN"
    TX = "TX"
    UT = "UT"
    VT = "VT"
    VA = "VA"
    WA = "WA"
    WV = "WV"
    WI = "WI"
    WY = "WY"
    DC = "DC"


class StrategyId(StrEnum):
    AUGUSTA_LOOPHOLE = "augusta_loophole"
    MEDICAL_REIMBURSEMENT = "medical_reimbursement"
    HIRING_CHILDREN = "hiring_children"
    CASH_BALANCE_PLAN = "cash_balance_plan"
    K401 = "k401"
    LEVERAGED_CHARITABLE = "leveraged_charitable"
    SHORT_TERM_RENTAL = "short_term_rental"
    RTU_PROGRAM = "rtu_program"
    FILM_CREDITS = "film_credits"
    S_CORP_CONVERSION = "s_corp_conversion"


class EligibilityStatus(StrEnum):
    ELIGIBLE = "ELIGIBLE"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    POTENTIAL = "POTENTIAL"


class RuleOperator(StrEnum):
    EQ = "eq"
    NEQ = "neq"
    GTE = "gte"
    LTE = "lte"
    IN = "in"
    EXISTS = "exists"


class RuleRowStatus(StrEnum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    MISSING_REQUIRED = "MISSING_REQUIRED"
    MISSING_OPTIONAL = "MISSING_OPTIONAL"


class StateTaxMethod(StrEnum):
    NONE = "none"
    FLAT = "flat"
    HYBRID = "hybrid_300k_estimate"


class ImpactModelKind(StrEnum):
    DEDUCTION_RANGE = "deduction_range"
    CREDIT_RANGE = "credit_range"
    DEFERRAL_RANGE = "deferral_range"
    UNKNOWN_RANGE = "unknown_range"


class AssumptionCategory(StrEnum):
    CAP = "CAP"
    DEFAULT = "DEFAULT"
    INTERACTION = "INTERACTION"
    CONSERVATISM = "CONSERVATISM"
    DATA_GAP = "DATA_GAP"


class ImpactFlag(StrEnum):
    ALREADY_IN_USE = "ALREADY_IN_USE"
    CAPPED_BY_TAXABLE_INCOME = "CAPPED_BY_TAXABLE_INCOME"
    CAPPED_BY_TAX_LIABILITY = "CAPPED_BY_TAX_LIABILITY"
    NOT_APPLIED_NOT_ELIGIBLE = "NOT_APPLIED_NOT_ELIGIBLE"
    NOT_APPLIED_POTENTIAL = "NOT_APPLIED_POTENTIAL"
    APPLIED = "APPLIED"
