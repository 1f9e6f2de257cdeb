"""Tests for the 837P generator."""
import pytest

from claim837.models.enums import Severity
from claim837.services.edi.control_numbers import ControlNumberSequencer, initialize_counters
from claim837.services.edi.generator import Claim837PGenerator, generate_837p
from claim837.config.settings import EDISettings
from tests.factories import (
    AddressFactory,
    BillingProviderFactory,
    Claim837PInputFactory,
    ClaimInfoFactory,
    PatientInfoFactory,
    PayerInfoFactory,
    ServiceLineFactory,
    SubscriberFactory,
)
from tests.utils.edi_test_utils import (
    find_all_segments,
    find_segment,
    get_segments,
    parse_segment,
    segment_ids,
)


def generate(claim, now):
    result = generate_837p(claim, now=now)
    assert result.success, result.errors
    return result, get_segments(result.edi_content)


@pytest.mark.unit
class TestEnvelope:
    """ISA/GS/ST framing and control-number agreement."""

    def test_isa_segment(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)

        assert segments[0] == (
            "ISA*00*          *00*          *ZZ*1234567890     *ZZ*TXMCD          "
            "*240125*0905*^*00501*000000001*0*T*:~"
        )

    def test_isa_is_fixed_length(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        # 105 characters plus the segment terminator
        assert len(segments[0]) == 106

    def test_long_submitter_id_truncated_in_isa(self, adult_claim, fixed_now):
        claim = adult_claim.model_copy(update={"submitter_id": "ABCDEFGHIJKLMNOPQRS"})
        _, segments = generate(claim, fixed_now)

        isa = parse_segment(segments[0])
        assert isa[6] == "ABCDEFGHIJKLMNO"
        assert len(segments[0]) == 106

    def test_gs_segment(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        assert segments[1] == "GS*HC*1234567890*TXMCD*20240125*0905*000001*X*005010X222A1~"

    def test_st_and_bht(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)

        assert segments[2] == "ST*837*0001*005010X222A1~"
        assert segments[3] == "BHT*0019*00*CLM-2024-001*20240125*0905*CH~"

    def test_trailers(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)

        assert segments[-2] == "GE*1*000001~"
        assert segments[-1] == "IEA*1*000000001~"

    def test_control_numbers_agree(self, pediatric_claim, fixed_now):
        result, segments = generate(pediatric_claim, fixed_now)

        isa = parse_segment(find_segment(segments, "ISA*"))
        iea = parse_segment(find_segment(segments, "IEA*"))
        gs = parse_segment(find_segment(segments, "GS*"))
        ge = parse_segment(find_segment(segments, "GE*"))
        st = parse_segment(find_segment(segments, "ST*"))
        se = parse_segment(find_segment(segments, "SE*"))

        assert isa[13] == iea[2] == result.control_numbers.isa_control_number
        assert gs[6] == ge[2] == result.control_numbers.gs_control_number
        assert st[2] == se[2] == result.control_numbers.st_control_number

    @pytest.mark.parametrize("factory_fixture", ["adult_claim", "pediatric_claim", "commercial_claim"])
    def test_se_count_matches_segments(self, request, factory_fixture, fixed_now):
        claim = request.getfixturevalue(factory_fixture)
        result, segments = generate(claim, fixed_now)

        ids = segment_ids(segments)
        st_index = ids.index("ST")
        se_index = ids.index("SE")
        counted = se_index - st_index + 1

        assert parse_segment(segments[se_index])[1] == str(counted)
        assert result.segment_count == counted

    def test_adult_segment_count(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        assert find_segment(segments, "SE*") == "SE*39*0001~"

    def test_every_segment_terminated(self, commercial_claim, fixed_now):
        _, segments = generate(commercial_claim, fixed_now)
        assert all(seg.endswith("~") and seg.count("~") == 1 for seg in segments)

    def test_wire_content_has_no_line_breaks(self, adult_claim, fixed_now):
        result, _ = generate(adult_claim, fixed_now)

        assert "\n" not in result.wire_content
        assert result.wire_content == result.edi_content.replace("\n", "")
        assert result.wire_content.startswith("ISA*")
        assert result.wire_content.endswith("IEA*1*000000001~")

    def test_custom_settings(self, adult_claim, fixed_now):
        settings = EDISettings(
            gs_control_number_width=9,
            interchange_id_qualifier="30",
            acknowledgment_requested="1",
            display_line_break="\r\n",
        )
        generator = Claim837PGenerator(
            sequencer=ControlNumberSequencer(gs_width=9),
            settings=settings,
            clock=lambda: fixed_now,
        )
        result = generator.generate(adult_claim)
        isa = parse_segment(result.edi_content.split("\r\n")[0])

        assert isa[5] == "30"
        assert isa[7] == "30"
        assert isa[14] == "1"
        assert result.control_numbers.gs_control_number == "000000001"
        assert "\r\n" in result.edi_content


@pytest.mark.unit
class TestControlNumberConsumption:
    """Control numbers across successive calls."""

    def test_sequential_numbers(self, adult_claim, commercial_claim, fixed_now):
        first = generate_837p(adult_claim, now=fixed_now)
        second = generate_837p(commercial_claim, now=fixed_now)

        assert first.control_numbers.isa_control_number == "000000001"
        assert second.control_numbers.isa_control_number == "000000002"
        assert second.control_numbers.gs_control_number == "000002"
        assert second.control_numbers.st_control_number == "0002"

    def test_rejected_claim_consumes_nothing(self, adult_claim, fixed_now):
        rejected = generate_837p(
            Claim837PInputFactory(billing_provider=BillingProviderFactory(npi="")), now=fixed_now
        )
        accepted = generate_837p(adult_claim, now=fixed_now)

        assert rejected.success is False
        assert rejected.control_numbers.isa_control_number == ""
        assert accepted.control_numbers.isa_control_number == "000000001"

    def test_resumes_from_persisted_state(self, adult_claim, fixed_now):
        initialize_counters(41, 17, 9998)
        result = generate_837p(adult_claim, now=fixed_now)

        assert result.control_numbers.isa_control_number == "000000042"
        assert result.control_numbers.gs_control_number == "000018"
        assert result.control_numbers.st_control_number == "9999"

    def test_injected_sequencer_leaves_default_alone(self, adult_claim, sequencer, fixed_now):
        sequencer.initialize(500, 500, 500)
        injected = generate_837p(adult_claim, sequencer=sequencer, now=fixed_now)
        default = generate_837p(adult_claim, now=fixed_now)

        assert injected.control_numbers.isa_control_number == "000000501"
        assert default.control_numbers.isa_control_number == "000000001"

    def test_deterministic_output(self, adult_claim, fixed_now):
        sequencer_a = ControlNumberSequencer()
        sequencer_b = ControlNumberSequencer()

        first = generate_837p(adult_claim, sequencer=sequencer_a, now=fixed_now)
        second = generate_837p(adult_claim, sequencer=sequencer_b, now=fixed_now)

        assert first.edi_content == second.edi_content
        assert first.wire_content == second.wire_content


@pytest.mark.unit
class TestRejection:
    """Blocking findings stop generation."""

    def test_result_shape(self, fixed_now):
        claim = Claim837PInputFactory(billing_provider=BillingProviderFactory(npi=""))
        result = generate_837p(claim, now=fixed_now)

        assert result.success is False
        assert result.edi_content is None
        assert result.wire_content is None
        assert result.segment_count == 0
        assert any(f.field == "billingProvider.npi" for f in result.errors)
        assert result.blocking_errors

    def test_warnings_do_not_block(self, fixed_now):
        claim = Claim837PInputFactory(claim=ClaimInfoFactory(total_charges_cents=40000))
        result = generate_837p(claim, now=fixed_now)

        assert result.success is True
        assert len(result.warnings) == 1
        assert result.errors == result.warnings
        assert find_segment(get_segments(result.edi_content), "CLM*").startswith("CLM*CLM-2024-001*400.00*")

    def test_self_patient_warns_and_generates(self, fixed_now):
        claim = Claim837PInputFactory(patient=PatientInfoFactory(relationship_to_subscriber="18"))
        result = generate_837p(claim, now=fixed_now)

        assert result.success is True
        assert result.errors[0].severity == Severity.WARNING
        assert result.errors[0].field == "patient.relationshipToSubscriber"


@pytest.mark.unit
class TestSubmitterAndBillingProvider:
    """Loops 1000A, 1000B and 2000A/2010AA."""

    def test_submitter_receiver(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)

        assert segments[4:7] == [
            "NM1*41*2*SOUTH TEXAS PT CLINIC*****46*1234567890~",
            "PER*IC*MARIA GARCIA*TE*9565551234*EM*billing@southtxpt.com~",
            "NM1*40*2*TEXAS MEDICAID AND HEALTHCARE PARTNERSHIP*****46*TXMCD~",
        ]

    def test_per_without_email(self, pediatric_claim, fixed_now):
        _, segments = generate(pediatric_claim, fixed_now)
        assert find_segment(segments, "PER*") == "PER*IC*MARIA GARCIA*TE*9565551234~"

    def test_phone_punctuation_removed(self, fixed_now):
        claim = Claim837PInputFactory(billing_provider=BillingProviderFactory(contact_phone="(956) 555-1234"))
        _, segments = generate(claim, fixed_now)
        assert find_segment(segments, "PER*") == "PER*IC*MARIA GARCIA*TE*9565551234~"

    def test_billing_provider_loop(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        start = segments.index("HL*1**20*1~")

        assert segments[start:start + 6] == [
            "HL*1**20*1~",
            "PRV*BI*PXC*225100000X~",
            "NM1*85*2*SOUTH TEXAS PHYSICAL THERAPY PLLC*****XX*1234567890~",
            "N3*1200 S 10TH ST*STE 200~",
            "N4*MCALLEN*TX*785011234~",
            "REF*EI*741234567~",
        ]

    def test_delimiters_in_names_are_cleaned(self, fixed_now):
        claim = Claim837PInputFactory(
            billing_provider=BillingProviderFactory(organization_name="SMITH*JONES~PT:REHAB^")
        )
        _, segments = generate(claim, fixed_now)

        nm1 = find_segment(segments, "NM1*85*")
        assert nm1 == "NM1*85*2*SMITH JONES PT REHAB*****XX*1234567890~"

    @pytest.mark.parametrize("member_id", ["AB*12~X", "AB:12", "AB^12"])
    def test_delimiters_in_member_id_reject_claim(self, fixed_now, member_id):
        claim = Claim837PInputFactory(subscriber=SubscriberFactory(member_id=member_id))
        result = generate_837p(claim, now=fixed_now)

        assert result.success is False
        assert result.edi_content is None
        assert [f.field for f in result.blocking_errors] == ["subscriber.memberId"]

    def test_identifier_segments_never_split(self, adult_claim):
        # Segment builders clean identifiers even when called on unvalidated input
        claim = adult_claim.model_copy(
            update={
                "subscriber": SubscriberFactory(member_id="AB*12~X"),
                "payer": PayerInfoFactory(payer_id="TX~MCD"),
            }
        )
        generator = Claim837PGenerator()

        subscriber_nm1 = find_segment(generator._subscriber_loop(claim), "NM1*IL*")
        payer_nm1 = generator._payer_loop(claim)[0]

        assert subscriber_nm1 == "NM1*IL*1*DOE*JOHN*A***MI*AB 12 X~"
        assert payer_nm1 == "NM1*PR*2*TEXAS MEDICAID*****PI*TX MCD~"
        assert len(parse_segment(subscriber_nm1)) == 10


@pytest.mark.unit
class TestSubscriberAndPayer:
    """Loops 2000B, 2010BA and 2010BB."""

    def test_adult_subscriber_loop(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        start = segments.index("HL*2*1*22*0~")

        assert segments[start:start + 7] == [
            "HL*2*1*22*0~",
            "SBR*P*18*******MC~",
            "NM1*IL*1*DOE*JOHN*A***MI*123456789~",
            "N3*456 OAK AVE~",
            "N4*MCALLEN*TX*78501~",
            "DMG*D8*19850315*M~",
            "NM1*PR*2*TEXAS MEDICAID*****PI*TXMCD~",
        ]

    def test_group_number_in_sbr03(self, commercial_claim, fixed_now):
        _, segments = generate(commercial_claim, fixed_now)

        assert find_segment(segments, "SBR*") == "SBR*P*18*GRP-TX-5500******BL~"
        assert find_segment(segments, "N3*321") == "N3*321 MESQUITE BLVD*APT 4B~"

    def test_payer_address(self, fixed_now):
        payer = PayerInfoFactory(payer_address=AddressFactory(line1="PO BOX 200555", city="AUSTIN", zip="78720"))
        _, segments = generate(Claim837PInputFactory(payer=payer), fixed_now)
        idx = segments.index("NM1*PR*2*TEXAS MEDICAID*****PI*TXMCD~")

        assert segments[idx + 1] == "N3*PO BOX 200555~"
        assert segments[idx + 2] == "N4*AUSTIN*TX*78720~"

    def test_no_patient_level_without_patient(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)

        assert find_segment(segments, "HL*3*") is None
        assert find_segment(segments, "PAT*") is None
        assert find_segment(segments, "NM1*QC*") is None


@pytest.mark.unit
class TestPatientLevel:
    """Loop 2000C/2010CA for a dependent."""

    def test_hierarchy(self, pediatric_claim, fixed_now):
        _, segments = generate(pediatric_claim, fixed_now)

        assert find_segment(segments, "HL*2*") == "HL*2*1*22*1~"
        assert find_segment(segments, "SBR*") == "SBR*P********MC~"

    def test_patient_loop(self, pediatric_claim, fixed_now):
        _, segments = generate(pediatric_claim, fixed_now)
        start = segments.index("HL*3*2*23*0~")

        assert segments[start:start + 6] == [
            "HL*3*2*23*0~",
            "PAT*19~",
            "NM1*QC*1*RAMIREZ*SOFIA~",
            "N3*789 PALM DR~",
            "N4*EDINBURG*TX*78539~",
            "DMG*D8*20191103*F~",
        ]

    def test_patient_loop_precedes_claim(self, pediatric_claim, fixed_now):
        _, segments = generate(pediatric_claim, fixed_now)
        ids = segment_ids(segments)

        assert ids.index("PAT") < ids.index("CLM")
        # Payer loop sits under the subscriber level
        assert segments.index("NM1*PR*2*TEXAS MEDICAID*****PI*TXMCD~") < segments.index("HL*3*2*23*0~")


@pytest.mark.unit
class TestClaimLoop:
    """Loop 2300 and the claim-level provider loops."""

    def test_clm(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        assert find_segment(segments, "CLM*") == "CLM*CLM-2024-001*350.00***11:B:1*Y*A*Y*I~"

    def test_frequency_code(self, fixed_now):
        claim = Claim837PInputFactory(claim=ClaimInfoFactory(frequency_code="7"))
        _, segments = generate(claim, fixed_now)
        assert parse_segment(find_segment(segments, "CLM*"))[5] == "11:B:7"

    def test_long_claim_id_truncated(self, fixed_now):
        claim = Claim837PInputFactory(claim=ClaimInfoFactory(claim_id="CLM-2024-000000000001-REPLACEMENT"))
        _, segments = generate(claim, fixed_now)

        assert parse_segment(find_segment(segments, "CLM*"))[1] == "CLM-2024-00000000000"
        assert parse_segment(find_segment(segments, "BHT*"))[3] == "CLM-2024-000000000001-REPLACEM"

    def test_claim_dates_and_references(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        clm_index = segments.index(find_segment(segments, "CLM*"))

        assert segments[clm_index + 1:clm_index + 5] == [
            "DTP*431*D8*20240102~",
            "DTP*454*D8*20240108~",
            "REF*G1*AUTH2024001~",
            "HI*ABK:M5416*ABF:M5130~",
        ]

    def test_last_seen_date(self, commercial_claim, fixed_now):
        _, segments = generate(commercial_claim, fixed_now)

        assert find_segment(segments, "DTP*304*") == "DTP*304*D8*20240105~"
        assert find_segment(segments, "DTP*454*") is None
        assert find_segment(segments, "REF*G1*") is None

    def test_referral_number_and_note(self, fixed_now):
        info = ClaimInfoFactory(referral_number="REF-778", claim_note="Patient seen for ~ follow up " + "x" * 100)
        _, segments = generate(Claim837PInputFactory(claim=info), fixed_now)

        assert find_segment(segments, "REF*9F*") == "REF*9F*REF-778~"
        note = parse_segment(find_segment(segments, "NTE*"))
        assert note[1] == "ADD"
        assert len(note[2]) == 80
        assert note[2].startswith("Patient seen for follow up x")

    def test_pediatric_diagnoses(self, pediatric_claim, fixed_now):
        _, segments = generate(pediatric_claim, fixed_now)
        assert find_segment(segments, "HI*") == "HI*ABK:F820*ABF:R262~"

    def test_claim_providers(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        start = segments.index(find_segment(segments, "NM1*DN*"))

        assert segments[start:start + 3] == [
            "NM1*DN*1*JOHNSON*ROBERT***MD*XX*5551234567~",
            "NM1*82*1*GARCIA*MARIA****XX*9876543210~",
            "PRV*PE*PXC*225100000X~",
        ]

    def test_providers_omitted_when_absent(self, fixed_now):
        claim = Claim837PInputFactory(rendering_provider=None, referring_provider=None)
        _, segments = generate(claim, fixed_now)

        assert find_segment(segments, "NM1*DN*") is None
        assert find_segment(segments, "NM1*82*") is None
        assert find_segment(segments, "PRV*PE*") is None


@pytest.mark.unit
class TestServiceLines:
    """Loop 2400."""

    def test_adult_lines(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)

        assert find_all_segments(segments, "SV1*") == [
            "SV1*HC:97161:GP*150.00*UN*1***1:2~",
            "SV1*HC:97110:GP*80.00*UN*2***1~",
            "SV1*HC:97140:GP:59*70.00*UN*1***1:2~",
            "SV1*HC:97530:GP*50.00*UN*1***1~",
        ]
        assert find_all_segments(segments, "LX*") == ["LX*1~", "LX*2~", "LX*3~", "LX*4~"]

    def test_line_group_order(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        ids = segment_ids(segments)
        first_lx = ids.index("LX")

        assert ids[first_lx:ids.index("SE")] == ["LX", "SV1", "DTP"] * 4

    def test_single_date_of_service(self, adult_claim, fixed_now):
        _, segments = generate(adult_claim, fixed_now)
        assert find_all_segments(segments, "DTP*472*") == ["DTP*472*D8*20240115~"] * 4

    def test_date_range(self, fixed_now):
        line = ServiceLineFactory(line_number=1, date_of_service="2024-01-15", date_of_service_end="2024-01-19")
        claim = Claim837PInputFactory(service_lines=[line], claim=ClaimInfoFactory(total_charges_cents=8000))
        _, segments = generate(claim, fixed_now)

        assert find_segment(segments, "DTP*472*") == "DTP*472*RD8*20240115-20240119~"

    def test_same_day_range_is_single_date(self, fixed_now):
        line = ServiceLineFactory(line_number=1, date_of_service="2024-01-15", date_of_service_end="2024-01-15")
        claim = Claim837PInputFactory(service_lines=[line], claim=ClaimInfoFactory(total_charges_cents=8000))
        _, segments = generate(claim, fixed_now)

        assert find_segment(segments, "DTP*472*") == "DTP*472*D8*20240115~"

    def test_line_without_modifiers(self, fixed_now):
        line = ServiceLineFactory(line_number=1, modifiers=[], units=1.5, diagnosis_pointers=[2, 1])
        claim = Claim837PInputFactory(service_lines=[line], claim=ClaimInfoFactory(total_charges_cents=8000))
        _, segments = generate(claim, fixed_now)

        assert find_segment(segments, "SV1*") == "SV1*HC:97110*80.00*UN*1.5***2:1~"

    def test_line_prior_authorization(self, fixed_now):
        line = ServiceLineFactory(line_number=1, prior_auth_number="LINEAUTH9")
        claim = Claim837PInputFactory(service_lines=[line], claim=ClaimInfoFactory(total_charges_cents=8000))
        _, segments = generate(claim, fixed_now)
        dtp_index = segments.index("DTP*472*D8*20240115~")

        assert segments[dtp_index + 1] == "REF*G1*LINEAUTH9~"

    def test_odd_cent_amounts(self, fixed_now):
        line = ServiceLineFactory(line_number=1, charge_amount_cents=12345)
        claim = Claim837PInputFactory(service_lines=[line], claim=ClaimInfoFactory(total_charges_cents=12345))
        _, segments = generate(claim, fixed_now)

        assert parse_segment(find_segment(segments, "SV1*"))[2] == "123.45"
        assert parse_segment(find_segment(segments, "CLM*"))[2] == "123.45"
