"""
Claim input models for 837P generation.

A ``Claim837PInput`` is the complete description of one professional claim.
The caller assembles it from whatever clinical and billing records exist;
this package only consumes it.

Code sets, identifier formats and dates are plain strings; a malformed
claim still loads and ``validate_claim`` reports it field by field. Field
names are snake_case in Python and camelCase on the wire
(``billing_provider`` / ``billingProvider``); both are accepted on input.

All monetary amounts are integer CENTS. Conversion to dollars happens only
when SV1/CLM segments are built.
"""
import enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class EDIModel(BaseModel):
    """Base for all claim input models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def unwrap_enum_codes(cls, v: Any) -> Any:
        """Accept code-set enums wherever a raw X12 code string is expected."""
        if isinstance(v, enum.Enum):
            return v.value
        return v


class Address(EDIModel):
    """Postal address (N3/N4)."""

    line1: str
    line2: Optional[str] = None
    city: str
    state: str  # 2-letter state code
    zip: str  # 5 or 9 digits, punctuation allowed


class BillingProvider(EDIModel):
    """
    Legal billing entity (Loop 2000A/2010AA).

    The contact fields also populate the submitter PER segment (Loop 1000A).
    """

    npi: str
    tax_id: str  # EIN, XX-XXXXXXX or XXXXXXXXX
    taxonomy_code: str
    organization_name: str
    address: Address
    contact_name: str
    contact_phone: str
    contact_email: Optional[str] = None


class RenderingProvider(EDIModel):
    """Individual clinician who performed the service (Loop 2310B)."""

    npi: str
    last_name: str
    first_name: str
    middle_name: Optional[str] = None
    suffix: Optional[str] = None
    taxonomy_code: str


class ReferringProvider(EDIModel):
    """Ordering / referring physician (Loop 2310A)."""

    npi: str
    last_name: str
    first_name: str
    middle_name: Optional[str] = None
    suffix: Optional[str] = None


class Subscriber(EDIModel):
    """Insurance policyholder (Loop 2000B/2010BA)."""

    member_id: str
    group_number: Optional[str] = None
    last_name: str
    first_name: str
    middle_name: Optional[str] = None
    suffix: Optional[str] = None
    date_of_birth: str  # YYYY-MM-DD
    gender: str  # M, F or U
    address: Address


class PatientInfo(EDIModel):
    """
    Patient who is NOT the subscriber (Loop 2000C/2010CA), e.g. a dependent
    child on a parent's policy. Omit entirely when the patient is the
    subscriber.
    """

    last_name: str
    first_name: str
    middle_name: Optional[str] = None
    suffix: Optional[str] = None
    date_of_birth: str  # YYYY-MM-DD
    gender: str
    address: Address
    relationship_to_subscriber: str  # PAT01, never 18


class PayerInfo(EDIModel):
    """Destination payer (Loop 2010BB)."""

    payer_id: str
    payer_name: str
    payer_address: Optional[Address] = None
    claim_filing_indicator: str  # SBR09


class ClaimInfo(EDIModel):
    """Claim header (Loop 2300)."""

    claim_id: str
    total_charges_cents: int
    place_of_service: str
    frequency_code: Optional[str] = None  # defaults to 1 (original) in CLM05-3
    # Order matters: the first code is the principal diagnosis
    diagnosis_codes: List[str] = Field(default_factory=list)
    prior_auth_number: Optional[str] = None
    onset_date: Optional[str] = None
    initial_treatment_date: Optional[str] = None
    last_seen_date: Optional[str] = None
    referral_number: Optional[str] = None
    claim_note: Optional[str] = None


class ServiceLine(EDIModel):
    """Professional service line (Loop 2400)."""

    line_number: int  # 1-based
    cpt_code: str
    modifiers: List[str] = Field(default_factory=list)
    charge_amount_cents: int
    units: Union[int, float]
    # 1-based indices into ClaimInfo.diagnosis_codes
    diagnosis_pointers: List[int] = Field(default_factory=list)
    date_of_service: str  # YYYY-MM-DD
    date_of_service_end: Optional[str] = None
    description: Optional[str] = None
    prior_auth_number: Optional[str] = None


class Claim837PInput(EDIModel):
    """Complete description of one claim to submit in its own interchange."""

    submitter_id: str
    submitter_name: str
    receiver_id: str
    receiver_name: str
    usage_indicator: str  # P = production, T = test

    billing_provider: BillingProvider
    rendering_provider: Optional[RenderingProvider] = None
    referring_provider: Optional[ReferringProvider] = None

    subscriber: Subscriber
    # Presence switches on the patient hierarchical level
    patient: Optional[PatientInfo] = None

    payer: PayerInfo
    claim: ClaimInfo
    service_lines: List[ServiceLine] = Field(default_factory=list)
