"""
Code sets used by the claim input and validation results.

Enums are string enums so values compare equal to the raw X12 codes a caller
may pass in as plain strings.
"""
import enum


class Severity(str, enum.Enum):
    """Validation finding severity."""

    ERROR = "error"  # blocks generation
    WARNING = "warning"


class UsageIndicator(str, enum.Enum):
    """ISA15 interchange usage indicator."""

    PRODUCTION = "P"
    TEST = "T"


class Gender(str, enum.Enum):
    """DMG03 gender code."""

    MALE = "M"
    FEMALE = "F"
    UNKNOWN = "U"


class RelationshipCode(str, enum.Enum):
    """Individual relationship code (SBR02 / PAT01)."""

    SELF = "18"
    SPOUSE = "01"
    CHILD = "19"
    EMPLOYEE = "20"
    UNKNOWN = "21"
    ORGAN_DONOR = "39"
    CADAVER_DONOR = "40"
    LIFE_PARTNER = "53"
    OTHER = "G8"


class ClaimFilingIndicator(str, enum.Enum):
    """SBR09 claim filing indicator code (full 005010X222A1 code list)."""

    OTHER_NON_FEDERAL = "11"
    PPO = "12"
    POS = "13"  # point of service
    EPO = "14"
    INDEMNITY = "15"
    HMO_MEDICARE_RISK = "16"
    DENTAL_MAINTENANCE = "17"
    AUTOMOBILE_MEDICAL = "AM"
    BLUE_CROSS = "BL"
    CHAMPUS = "CH"
    COMMERCIAL = "CI"
    DISABILITY = "DS"
    FEDERAL_EMPLOYEES = "FI"
    HMO = "HM"
    LIABILITY_MEDICAL = "LM"
    MEDICARE_PART_A = "MA"
    MEDICARE_PART_B = "MB"
    MEDICAID = "MC"
    OTHER_FEDERAL = "OF"
    TITLE_V = "TV"
    VETERANS_AFFAIRS = "VA"
    WORKERS_COMPENSATION = "WC"
    MUTUALLY_DEFINED = "ZZ"


class ClaimFrequencyCode(str, enum.Enum):
    """CLM05-3 claim frequency type code."""

    ORIGINAL = "1"
    REPLACEMENT = "7"
    VOID = "8"
