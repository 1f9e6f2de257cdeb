"""
ANSI X12 837P (Professional Claims) generator, version 005010X222A1.

Builds one interchange (ISA/GS/ST ... SE/GE/IEA) holding exactly one
transaction set for one claim:

- Loop 1000A/1000B: submitter (NM1*41, PER) and receiver (NM1*40)
- Loop 2000A/2010AA: billing provider (HL*1, PRV*BI, NM1*85, N3, N4, REF*EI)
- Loop 2000B/2010BA/2010BB: subscriber (HL*2, SBR, NM1*IL, N3, N4, DMG) and
  payer (NM1*PR, optional N3/N4)
- Loop 2000C/2010CA: patient (HL*3, PAT, NM1*QC, N3, N4, DMG), only when the
  patient is not the subscriber
- Loop 2300: claim (CLM, DTP*431/454/304, REF*G1, REF*9F, HI, NTE)
- Loop 2310A/2310B: referring (NM1*DN) and rendering (NM1*82, PRV*PE)
  providers when present
- Loop 2400: one LX/SV1/DTP*472 (+ REF*G1) group per service line

Control numbers are only drawn once validation has passed, so a rejected
claim never consumes one.
"""
from datetime import datetime
from typing import Callable, List, Optional

from claim837.config.settings import EDISettings, get_settings
from claim837.models.claim import Address, Claim837PInput
from claim837.models.enums import RelationshipCode
from claim837.models.results import ControlNumbers, GenerationResult
from claim837.services.edi import control_numbers as sequencing
from claim837.services.edi.control_numbers import ControlNumberSequencer
from claim837.services.edi.formatters import (
    COMPONENT_SEPARATOR,
    REPETITION_SEPARATOR,
    composite,
    digits_only,
    edi_clean,
    edi_date,
    edi_time,
    fixed_width,
    format_npi,
    format_tax_id,
    segment,
)
from claim837.services.edi.validator import has_errors, validate_claim
from claim837.utils.decimal_utils import cents_to_dollars, format_quantity
from claim837.utils.logger import get_logger

logger = get_logger(__name__)

IMPLEMENTATION_GUIDE = "005010X222A1"
INTERCHANGE_VERSION = "00501"
TRANSACTION_SET_ID = "837"

DEFAULT_FREQUENCY_CODE = "1"
PRINCIPAL_DIAGNOSIS_QUALIFIER = "ABK"
OTHER_DIAGNOSIS_QUALIFIER = "ABF"

BHT_REFERENCE_MAX = 30
CLAIM_ID_MAX = 20
NOTE_MAX = 80


class Claim837PGenerator:
    """Generates 837P interchanges from validated claim input."""

    def __init__(
        self,
        sequencer: Optional[ControlNumberSequencer] = None,
        settings: Optional[EDISettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            sequencer: Control-number source; the process-wide default when omitted
            settings: Envelope settings; the process-wide settings when omitted
            clock: Returns the creation timestamp for BHT/ISA/GS
        """
        self.sequencer = sequencer
        self.settings = settings
        self.clock = clock or datetime.now

    def generate(self, claim: Claim837PInput) -> GenerationResult:
        """
        Validate ``claim`` and build its interchange.

        Args:
            claim: Claim to submit

        Returns:
            GenerationResult; ``success`` is False iff validation found an error
        """
        findings = validate_claim(claim)
        claim_id = claim.claim.claim_id if claim.claim is not None else None

        if has_errors(findings):
            logger.warning(
                "837P generation rejected by validation",
                claim_id=claim_id,
                error_count=sum(1 for finding in findings if finding.is_error),
                fields=[finding.field for finding in findings if finding.is_error],
            )
            return GenerationResult(
                success=False,
                errors=findings,
                control_numbers=ControlNumbers(),
                segment_count=0,
            )

        settings = self.settings or get_settings()
        sequencer = self.sequencer or sequencing.default_sequencer
        numbers = sequencer.next_control_numbers()
        now = self.clock()

        transaction = self._build_transaction(claim, numbers, now)
        segment_count = len(transaction)

        segments = [self._isa(claim, numbers, now, settings), self._gs(claim, numbers, now)]
        segments.extend(transaction)
        # Exactly one transaction set in one functional group
        segments.append(segment("GE", "1", numbers.gs_control_number))
        segments.append(segment("IEA", "1", numbers.isa_control_number))

        logger.info(
            "837P interchange generated",
            claim_id=claim_id,
            isa_control_number=numbers.isa_control_number,
            gs_control_number=numbers.gs_control_number,
            st_control_number=numbers.st_control_number,
            segment_count=segment_count,
            service_lines=len(claim.service_lines),
            warning_count=len(findings),
        )

        return GenerationResult(
            success=True,
            edi_content=settings.display_line_break.join(segments),
            wire_content="".join(segments),
            errors=findings,
            control_numbers=numbers,
            segment_count=segment_count,
        )

    # ------------------------------------------------------------------
    # Envelope
    # ------------------------------------------------------------------

    def _isa(self, claim: Claim837PInput, numbers: ControlNumbers, now: datetime, settings: EDISettings) -> str:
        qualifier = settings.interchange_id_qualifier
        return segment(
            "ISA",
            "00",  # ISA01 no authorization information
            fixed_width("", 10),
            "00",  # ISA03 no security information
            fixed_width("", 10),
            qualifier,
            fixed_width(edi_clean(claim.submitter_id), 15),
            qualifier,
            fixed_width(edi_clean(claim.receiver_id), 15),
            edi_date(now)[2:],  # ISA09 YYMMDD
            edi_time(now),
            REPETITION_SEPARATOR,
            INTERCHANGE_VERSION,
            numbers.isa_control_number,
            settings.acknowledgment_requested,
            claim.usage_indicator,
            COMPONENT_SEPARATOR,
        )

    def _gs(self, claim: Claim837PInput, numbers: ControlNumbers, now: datetime) -> str:
        return segment(
            "GS",
            "HC",  # health care claim
            edi_clean(claim.submitter_id),
            edi_clean(claim.receiver_id),
            edi_date(now),
            edi_time(now),
            numbers.gs_control_number,
            "X",
            IMPLEMENTATION_GUIDE,
        )

    # ------------------------------------------------------------------
    # Transaction set
    # ------------------------------------------------------------------

    def _build_transaction(self, claim: Claim837PInput, numbers: ControlNumbers, now: datetime) -> List[str]:
        """Build ST through SE; SE01 counts every segment including itself."""
        txn = [
            segment("ST", TRANSACTION_SET_ID, numbers.st_control_number, IMPLEMENTATION_GUIDE),
            segment(
                "BHT",
                "0019",  # information source, subscriber, dependent
                "00",  # original
                edi_clean(claim.claim.claim_id)[:BHT_REFERENCE_MAX],
                edi_date(now),
                edi_time(now),
                "CH",  # chargeable
            ),
        ]
        txn.extend(self._submitter_receiver_loops(claim))
        txn.extend(self._billing_provider_loop(claim))
        txn.extend(self._subscriber_loop(claim))
        txn.extend(self._payer_loop(claim))
        if claim.patient is not None:
            txn.extend(self._patient_loop(claim))
        txn.extend(self._claim_loop(claim))
        txn.extend(self._claim_provider_loops(claim))
        txn.extend(self._service_line_loops(claim))

        txn.append(segment("SE", str(len(txn) + 1), numbers.st_control_number))
        return txn

    def _submitter_receiver_loops(self, claim: Claim837PInput) -> List[str]:
        bp = claim.billing_provider
        contact = ["IC", edi_clean(bp.contact_name), "TE", digits_only(bp.contact_phone)]
        if bp.contact_email:
            contact.extend(["EM", edi_clean(bp.contact_email)])

        return [
            segment(
                "NM1", "41", "2", edi_clean(claim.submitter_name), "", "", "", "", "46", edi_clean(claim.submitter_id)
            ),
            segment("PER", *contact),
            segment(
                "NM1", "40", "2", edi_clean(claim.receiver_name), "", "", "", "", "46", edi_clean(claim.receiver_id)
            ),
        ]

    def _billing_provider_loop(self, claim: Claim837PInput) -> List[str]:
        bp = claim.billing_provider
        return [
            segment("HL", "1", "", "20", "1"),
            segment("PRV", "BI", "PXC", edi_clean(bp.taxonomy_code)),
            segment(
                "NM1", "85", "2", edi_clean(bp.organization_name), "", "", "", "", "XX", format_npi(bp.npi)
            ),
            *_address_segments(bp.address),
            segment("REF", "EI", format_tax_id(bp.tax_id)),
        ]

    def _subscriber_loop(self, claim: Claim837PInput) -> List[str]:
        sub = claim.subscriber
        has_patient_level = claim.patient is not None
        return [
            segment("HL", "2", "1", "22", "1" if has_patient_level else "0"),
            segment(
                "SBR",
                "P",  # primary
                # Relationship moves to PAT01 when a patient level follows
                "" if has_patient_level else RelationshipCode.SELF.value,
                edi_clean(sub.group_number),
                "",
                "",
                "",
                "",
                "",
                claim.payer.claim_filing_indicator,
            ),
            segment(
                "NM1",
                "IL",
                "1",
                edi_clean(sub.last_name),
                edi_clean(sub.first_name),
                edi_clean(sub.middle_name),
                "",
                edi_clean(sub.suffix),
                "MI",
                edi_clean(sub.member_id),
            ),
            *_address_segments(sub.address),
            segment("DMG", "D8", edi_date(sub.date_of_birth), sub.gender),
        ]

    def _payer_loop(self, claim: Claim837PInput) -> List[str]:
        payer = claim.payer
        segments = [
            segment("NM1", "PR", "2", edi_clean(payer.payer_name), "", "", "", "", "PI", edi_clean(payer.payer_id))
        ]
        if payer.payer_address is not None:
            segments.extend(_address_segments(payer.payer_address))
        return segments

    def _patient_loop(self, claim: Claim837PInput) -> List[str]:
        pat = claim.patient
        return [
            segment("HL", "3", "2", "23", "0"),
            segment("PAT", pat.relationship_to_subscriber),
            # 2010CA carries no patient identifier
            segment(
                "NM1",
                "QC",
                "1",
                edi_clean(pat.last_name),
                edi_clean(pat.first_name),
                edi_clean(pat.middle_name),
                "",
                edi_clean(pat.suffix),
            ),
            *_address_segments(pat.address),
            segment("DMG", "D8", edi_date(pat.date_of_birth), pat.gender),
        ]

    def _claim_loop(self, claim: Claim837PInput) -> List[str]:
        clm = claim.claim
        facility = composite(clm.place_of_service, "B", clm.frequency_code or DEFAULT_FREQUENCY_CODE)
        segments = [
            segment(
                "CLM",
                edi_clean(clm.claim_id)[:CLAIM_ID_MAX],
                cents_to_dollars(clm.total_charges_cents),
                "",
                "",
                facility,
                "Y",  # provider accepts assignment
                "A",  # benefits assigned
                "Y",  # signature on file
                "I",  # informed consent to release
            )
        ]

        for qualifier, value in (
            ("431", clm.onset_date),
            ("454", clm.initial_treatment_date),
            ("304", clm.last_seen_date),
        ):
            if value:
                segments.append(segment("DTP", qualifier, "D8", edi_date(value)))

        if clm.prior_auth_number:
            segments.append(segment("REF", "G1", edi_clean(clm.prior_auth_number)))
        if clm.referral_number:
            segments.append(segment("REF", "9F", edi_clean(clm.referral_number)))

        segments.append(segment("HI", *_diagnosis_elements(clm.diagnosis_codes)))

        if clm.claim_note:
            segments.append(segment("NTE", "ADD", edi_clean(clm.claim_note)[:NOTE_MAX]))
        return segments

    def _claim_provider_loops(self, claim: Claim837PInput) -> List[str]:
        segments = []
        ref = claim.referring_provider
        if ref is not None:
            segments.append(
                segment(
                    "NM1",
                    "DN",
                    "1",
                    edi_clean(ref.last_name),
                    edi_clean(ref.first_name),
                    edi_clean(ref.middle_name),
                    "",
                    edi_clean(ref.suffix),
                    "XX",
                    format_npi(ref.npi),
                )
            )

        rp = claim.rendering_provider
        if rp is not None:
            segments.append(
                segment(
                    "NM1",
                    "82",
                    "1",
                    edi_clean(rp.last_name),
                    edi_clean(rp.first_name),
                    edi_clean(rp.middle_name),
                    "",
                    edi_clean(rp.suffix),
                    "XX",
                    format_npi(rp.npi),
                )
            )
            segments.append(segment("PRV", "PE", "PXC", edi_clean(rp.taxonomy_code)))
        return segments

    def _service_line_loops(self, claim: Claim837PInput) -> List[str]:
        segments = []
        for line in claim.service_lines:
            modifiers = [modifier for modifier in line.modifiers if modifier]
            segments.append(segment("LX", str(line.line_number)))
            segments.append(
                segment(
                    "SV1",
                    composite("HC", line.cpt_code, *modifiers),
                    cents_to_dollars(line.charge_amount_cents),
                    "UN",
                    format_quantity(line.units),
                    "",  # place of service taken from CLM05
                    "",
                    composite(*(str(pointer) for pointer in line.diagnosis_pointers)),
                )
            )

            if line.date_of_service_end and line.date_of_service_end != line.date_of_service:
                period = f"{edi_date(line.date_of_service)}-{edi_date(line.date_of_service_end)}"
                segments.append(segment("DTP", "472", "RD8", period))
            else:
                segments.append(segment("DTP", "472", "D8", edi_date(line.date_of_service)))

            if line.prior_auth_number:
                segments.append(segment("REF", "G1", edi_clean(line.prior_auth_number)))
        return segments


def _address_segments(address: Address) -> List[str]:
    """N3 (one or two street lines) and N4."""
    street = [edi_clean(address.line1)]
    if address.line2:
        street.append(edi_clean(address.line2))
    return [
        segment("N3", *street),
        segment("N4", edi_clean(address.city), address.state, digits_only(address.zip)),
    ]


def _diagnosis_elements(codes: List[str]) -> List[str]:
    """HI composites: first code is principal (ABK), the rest other (ABF); periods removed."""
    return [
        composite(PRINCIPAL_DIAGNOSIS_QUALIFIER if idx == 0 else OTHER_DIAGNOSIS_QUALIFIER, code.replace(".", ""))
        for idx, code in enumerate(codes)
    ]


def generate_837p(
    claim: Claim837PInput,
    sequencer: Optional[ControlNumberSequencer] = None,
    now: Optional[datetime] = None,
) -> GenerationResult:
    """
    Generate a complete 837P interchange for ``claim``.

    Args:
        claim: Claim to submit
        sequencer: Control-number source (process-wide default when omitted)
        now: Creation timestamp (current local time when omitted)

    Returns:
        GenerationResult with content, control numbers and all findings
    """
    clock = (lambda: now) if now is not None else None
    return Claim837PGenerator(sequencer=sequencer, clock=clock).generate(claim)
