"""
Claim validation ahead of 837P generation.

``validate_claim`` maps a claim to a list of field-level findings. Findings
with ``error`` severity block generation; ``warning`` findings are returned
to the caller alongside a successful interchange. Validation is pure: no I/O,
no logging, same findings for the same claim.

Field paths use the camelCase input names (``billingProvider.npi``,
``serviceLines[2].modifiers[0]``).
"""
import math
import re
from typing import Any, List, Optional

from claim837.models.claim import Address, Claim837PInput, ServiceLine
from claim837.models.enums import (
    ClaimFilingIndicator,
    ClaimFrequencyCode,
    Gender,
    RelationshipCode,
    Severity,
    UsageIndicator,
)
from claim837.models.results import ValidationFinding
from claim837.services.edi.formatters import (
    COMPONENT_SEPARATOR,
    ELEMENT_SEPARATOR,
    REPETITION_SEPARATOR,
    SEGMENT_TERMINATOR,
    digits_only,
)

NPI_PATTERN = re.compile(r"\d{10}")
TAX_ID_PATTERN = re.compile(r"\d{9}")
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
CPT_PATTERN = re.compile(r"[0-9A-Z]{5}")
MODIFIER_PATTERN = re.compile(r"[A-Z0-9]{2}")
STATE_PATTERN = re.compile(r"[A-Z]{2}")
PLACE_OF_SERVICE_PATTERN = re.compile(r"\d{2}")
# ICD-10-CM, undotted: letter, digit, then 1-5 more characters
ICD10_PATTERN = re.compile(r"[A-Z]\d[0-9A-Z]{1,5}")

MAX_DIAGNOSIS_CODES = 12
MAX_DIAGNOSIS_POINTERS = 4
MAX_MODIFIERS = 4
MIN_PHONE_DIGITS = 10
DELIMITERS = ELEMENT_SEPARATOR + SEGMENT_TERMINATOR + COMPONENT_SEPARATOR + REPETITION_SEPARATOR

GENDER_CODES = {code.value for code in Gender}
RELATIONSHIP_CODES = {code.value for code in RelationshipCode}
FILING_INDICATOR_CODES = {code.value for code in ClaimFilingIndicator}
FREQUENCY_CODES = {code.value for code in ClaimFrequencyCode}
USAGE_INDICATORS = {code.value for code in UsageIndicator}


def _blank(value: Optional[str]) -> bool:
    return not isinstance(value, str) or not value.strip()


def _matches(pattern: "re.Pattern[str]", value: Any) -> bool:
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


class ClaimValidator:
    """Collects findings for one claim."""

    def __init__(self) -> None:
        self.findings: List[ValidationFinding] = []

    def validate(self, claim: Claim837PInput) -> List[ValidationFinding]:
        """
        Run every rule against ``claim``.

        Args:
            claim: Claim to validate

        Returns:
            All findings, in rule order (errors and warnings mixed)
        """
        self.findings = []
        self._validate_interchange(claim)
        self._validate_billing_provider(claim)
        self._validate_rendering_provider(claim)
        self._validate_referring_provider(claim)
        self._validate_subscriber(claim)
        self._validate_patient(claim)
        self._validate_payer(claim)
        self._validate_claim_info(claim)
        self._validate_service_lines(claim)
        return self.findings

    def error(self, field: str, message: str) -> None:
        self.findings.append(ValidationFinding(field=field, message=message, severity=Severity.ERROR))

    def warning(self, field: str, message: str) -> None:
        self.findings.append(ValidationFinding(field=field, message=message, severity=Severity.WARNING))

    def require(self, value: Optional[str], field: str, message: str) -> None:
        if _blank(value):
            self.error(field, message)

    def require_identifier(self, value: Optional[str], field: str, label: str) -> None:
        """Required, and free of delimiter characters."""
        if _blank(value):
            self.error(field, f"{label} is required")
        elif any(char in DELIMITERS for char in value):
            self.error(field, f"{label} must not contain any of the characters {' '.join(DELIMITERS)}")

    # ------------------------------------------------------------------
    # Interchange
    # ------------------------------------------------------------------

    def _validate_interchange(self, claim: Claim837PInput) -> None:
        self.require_identifier(claim.submitter_id, "submitterId", "Submitter ID")
        self.require(claim.submitter_name, "submitterName", "Submitter name is required")
        self.require_identifier(claim.receiver_id, "receiverId", "Receiver ID")
        self.require(claim.receiver_name, "receiverName", "Receiver name is required")
        if claim.usage_indicator not in USAGE_INDICATORS:
            self.error("usageIndicator", "Usage indicator must be P (production) or T (test)")

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def _validate_billing_provider(self, claim: Claim837PInput) -> None:
        bp = claim.billing_provider
        if bp is None:
            self.error("billingProvider", "Billing provider is required")
            return

        if not _matches(NPI_PATTERN, digits_only(bp.npi)):
            self.error("billingProvider.npi", "Billing provider NPI must be 10 digits")
        if not _matches(TAX_ID_PATTERN, digits_only(bp.tax_id)):
            self.error("billingProvider.taxId", "Billing provider Tax ID (EIN) must be 9 digits")
        self.require_identifier(bp.taxonomy_code, "billingProvider.taxonomyCode", "Billing provider taxonomy code")
        self.require(
            bp.organization_name,
            "billingProvider.organizationName",
            "Billing provider organization name is required",
        )
        self._validate_address(bp.address, "billingProvider.address", "Billing provider")
        self.require(bp.contact_name, "billingProvider.contactName", "Submitter contact name is required")
        if len(digits_only(bp.contact_phone)) < MIN_PHONE_DIGITS:
            self.error("billingProvider.contactPhone", "Submitter contact phone must be at least 10 digits")

    def _validate_rendering_provider(self, claim: Claim837PInput) -> None:
        rp = claim.rendering_provider
        if rp is None:
            return
        if not _matches(NPI_PATTERN, digits_only(rp.npi)):
            self.error("renderingProvider.npi", "Rendering provider NPI must be 10 digits")
        self.require(rp.last_name, "renderingProvider.lastName", "Rendering provider last name is required")
        self.require(rp.first_name, "renderingProvider.firstName", "Rendering provider first name is required")
        self.require_identifier(
            rp.taxonomy_code, "renderingProvider.taxonomyCode", "Rendering provider taxonomy code"
        )

    def _validate_referring_provider(self, claim: Claim837PInput) -> None:
        ref = claim.referring_provider
        if ref is None:
            return
        if not _matches(NPI_PATTERN, digits_only(ref.npi)):
            self.error("referringProvider.npi", "Referring provider NPI must be 10 digits")
        self.require(ref.last_name, "referringProvider.lastName", "Referring provider last name is required")
        self.require(ref.first_name, "referringProvider.firstName", "Referring provider first name is required")

    # ------------------------------------------------------------------
    # Subscriber / patient
    # ------------------------------------------------------------------

    def _validate_subscriber(self, claim: Claim837PInput) -> None:
        sub = claim.subscriber
        if sub is None:
            self.error("subscriber", "Subscriber information is required")
            return

        self.require_identifier(sub.member_id, "subscriber.memberId", "Subscriber member ID")
        self.require(sub.last_name, "subscriber.lastName", "Subscriber last name is required")
        self.require(sub.first_name, "subscriber.firstName", "Subscriber first name is required")
        if not _matches(DATE_PATTERN, sub.date_of_birth):
            self.error("subscriber.dateOfBirth", "Subscriber date of birth must be YYYY-MM-DD")
        if sub.gender not in GENDER_CODES:
            self.error("subscriber.gender", "Subscriber gender must be M, F, or U")
        self._validate_address(sub.address, "subscriber.address", "Subscriber")

    def _validate_patient(self, claim: Claim837PInput) -> None:
        pat = claim.patient
        if pat is None:
            return

        self.require(pat.last_name, "patient.lastName", "Patient last name is required")
        self.require(pat.first_name, "patient.firstName", "Patient first name is required")
        if not _matches(DATE_PATTERN, pat.date_of_birth):
            self.error("patient.dateOfBirth", "Patient date of birth must be YYYY-MM-DD")
        if pat.gender not in GENDER_CODES:
            self.error("patient.gender", "Patient gender must be M, F, or U")

        relationship = pat.relationship_to_subscriber
        if _blank(relationship):
            self.error("patient.relationshipToSubscriber", "Patient relationship to subscriber is required")
        elif relationship == RelationshipCode.SELF.value:
            # Generates, but the patient loop is redundant
            self.warning(
                "patient.relationshipToSubscriber",
                "If patient is Self (18), omit the patient object and use subscriber only",
            )
        elif relationship not in RELATIONSHIP_CODES:
            self.error(
                "patient.relationshipToSubscriber",
                f"Patient relationship code '{relationship}' is not a valid individual relationship code",
            )
        self._validate_address(pat.address, "patient.address", "Patient")

    # ------------------------------------------------------------------
    # Payer
    # ------------------------------------------------------------------

    def _validate_payer(self, claim: Claim837PInput) -> None:
        payer = claim.payer
        if payer is None:
            self.error("payer", "Payer information is required")
            return

        self.require_identifier(payer.payer_id, "payer.payerId", "Payer ID")
        self.require(payer.payer_name, "payer.payerName", "Payer name is required")
        if _blank(payer.claim_filing_indicator):
            self.error("payer.claimFilingIndicator", "Claim filing indicator is required")
        elif payer.claim_filing_indicator not in FILING_INDICATOR_CODES:
            self.error(
                "payer.claimFilingIndicator",
                f"Claim filing indicator '{payer.claim_filing_indicator}' is not a recognized code",
            )
        if payer.payer_address is not None:
            self._validate_address(payer.payer_address, "payer.payerAddress", "Payer")

    # ------------------------------------------------------------------
    # Claim header
    # ------------------------------------------------------------------

    def _validate_claim_info(self, claim: Claim837PInput) -> None:
        clm = claim.claim
        if clm is None:
            self.error("claim", "Claim information is required")
            return

        self.require(clm.claim_id, "claim.claimId", "Claim ID is required")
        if not _positive_int(clm.total_charges_cents):
            self.error("claim.totalChargesCents", "Total charges must be a positive number (in cents)")
        if _blank(clm.place_of_service):
            self.error("claim.placeOfService", "Place of service code is required")
        elif not _matches(PLACE_OF_SERVICE_PATTERN, clm.place_of_service):
            self.error("claim.placeOfService", "Place of service code must be 2 digits")
        if clm.frequency_code is not None and clm.frequency_code not in FREQUENCY_CODES:
            self.error("claim.frequencyCode", "Claim frequency code must be 1 (original), 7 (replacement) or 8 (void)")

        codes = clm.diagnosis_codes or []
        if not codes:
            self.error("claim.diagnosisCodes", "At least one diagnosis code (ICD-10) is required")
        elif len(codes) > MAX_DIAGNOSIS_CODES:
            self.error("claim.diagnosisCodes", "Maximum of 12 diagnosis codes allowed per claim")
        for idx, code in enumerate(codes):
            if not _matches(ICD10_PATTERN, code.replace(".", "") if isinstance(code, str) else code):
                self.error(f"claim.diagnosisCodes[{idx}]", f"Diagnosis code '{code}' is not a valid ICD-10 code")

        for attr, field, label in (
            ("onset_date", "claim.onsetDate", "Onset date"),
            ("initial_treatment_date", "claim.initialTreatmentDate", "Initial treatment date"),
            ("last_seen_date", "claim.lastSeenDate", "Last seen date"),
        ):
            value = getattr(clm, attr)
            if value and not _matches(DATE_PATTERN, value):
                self.error(field, f"{label} must be YYYY-MM-DD")

    # ------------------------------------------------------------------
    # Service lines
    # ------------------------------------------------------------------

    def _validate_service_lines(self, claim: Claim837PInput) -> None:
        lines = claim.service_lines or []
        if not lines:
            self.error("serviceLines", "At least one service line is required")
            return

        clm = claim.claim
        charges = [line.charge_amount_cents for line in lines]
        if clm is not None and all(_positive_int(charge) for charge in charges):
            line_total = sum(charges)
            if line_total != clm.total_charges_cents:
                # Bundled pricing can legitimately differ; never blocks
                self.warning(
                    "serviceLines",
                    f"Service line charges total {line_total} cents but claim total is "
                    f"{clm.total_charges_cents} cents",
                )

        numbers = [line.line_number for line in lines]
        if numbers != list(range(1, len(lines) + 1)):
            self.warning("serviceLines", "Service line numbers should run sequentially from 1")

        diagnosis_count = len(clm.diagnosis_codes or []) if clm is not None else 0
        for idx, line in enumerate(lines):
            self._validate_service_line(line, idx, diagnosis_count)

    def _validate_service_line(self, line: ServiceLine, idx: int, diagnosis_count: int) -> None:
        prefix = f"serviceLines[{idx}]"
        label = f"Line {idx + 1}"

        if not _matches(CPT_PATTERN, line.cpt_code):
            self.error(f"{prefix}.cptCode", f"{label}: CPT code must be 5 alphanumeric characters")
        if not _positive_int(line.charge_amount_cents):
            self.error(f"{prefix}.chargeAmountCents", f"{label}: Charge amount must be positive (in cents)")
        if not _positive_number(line.units):
            self.error(f"{prefix}.units", f"{label}: Units must be a positive number")

        pointers = line.diagnosis_pointers or []
        if not pointers:
            self.error(f"{prefix}.diagnosisPointers", f"{label}: At least one diagnosis pointer is required")
        elif len(pointers) > MAX_DIAGNOSIS_POINTERS:
            self.error(f"{prefix}.diagnosisPointers", f"{label}: Maximum of 4 diagnosis pointers per service line")
        for pointer in pointers:
            # An unresolvable pointer would reference a non-existent HI element
            if not _positive_int(pointer) or pointer > diagnosis_count:
                self.error(
                    f"{prefix}.diagnosisPointers",
                    f"{label}: Diagnosis pointer {pointer} references non-existent diagnosis "
                    f"(only {diagnosis_count} defined)",
                )

        modifiers = line.modifiers or []
        if len(modifiers) > MAX_MODIFIERS:
            self.error(f"{prefix}.modifiers", f"{label}: Maximum of 4 modifiers per service line")
        for mi, modifier in enumerate(modifiers):
            if not _matches(MODIFIER_PATTERN, modifier):
                self.error(
                    f"{prefix}.modifiers[{mi}]",
                    f'{label}: Modifier "{modifier}" must be 2 alphanumeric characters',
                )

        if not _matches(DATE_PATTERN, line.date_of_service):
            self.error(f"{prefix}.dateOfService", f"{label}: Date of service must be YYYY-MM-DD")
        if line.date_of_service_end and not _matches(DATE_PATTERN, line.date_of_service_end):
            self.error(f"{prefix}.dateOfServiceEnd", f"{label}: End date of service must be YYYY-MM-DD")

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def _validate_address(self, address: Optional[Address], path: str, owner: str) -> None:
        if address is None:
            self.error(f"{path}.line1", f"{owner} street address is required")
            return
        self.require(address.line1, f"{path}.line1", f"{owner} street address is required")
        self.require(address.city, f"{path}.city", f"{owner} city is required")
        if not _matches(STATE_PATTERN, address.state):
            self.error(f"{path}.state", f"{owner} state must be a 2-letter code")
        self.require(address.zip, f"{path}.zip", f"{owner} ZIP code is required")


def validate_claim(claim: Claim837PInput) -> List[ValidationFinding]:
    """Validate ``claim`` and return every finding."""
    return ClaimValidator().validate(claim)


def has_errors(findings: List[ValidationFinding]) -> bool:
    """True iff at least one finding blocks generation."""
    return any(finding.severity == Severity.ERROR for finding in findings)
