"""Validation and generation result models."""
from typing import List, Optional

from pydantic import Field

from claim837.models.claim import EDIModel
from claim837.models.enums import Severity
from claim837.utils.errors import ClaimRejectedError


class ValidationFinding(EDIModel):
    """A single field-level validation finding."""

    field: str  # camelCase path, e.g. serviceLines[0].cptCode
    message: str
    severity: Severity

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


class ControlNumbers(EDIModel):
    """Control numbers drawn for one interchange. Empty on a rejected claim."""

    isa_control_number: str = ""  # ISA13 / IEA02, 9 digits
    gs_control_number: str = ""  # GS06 / GE02
    st_control_number: str = ""  # ST02 / SE02, 4 digits


class CounterState(EDIModel):
    """Raw sequencer counters, persisted by the caller between restarts."""

    isa: int = 0
    gs: int = 0
    st: int = 0


class GenerationResult(EDIModel):
    """
    Outcome of one ``generate_837p`` call.

    ``edi_content`` (display form, one segment per line) and ``wire_content``
    (terminator-only form for transmission) are present iff ``success``.
    ``errors`` always carries every finding the validator produced, including
    warnings on a successful generation.
    """

    success: bool
    edi_content: Optional[str] = None
    wire_content: Optional[str] = None
    errors: List[ValidationFinding] = Field(default_factory=list)
    control_numbers: ControlNumbers = Field(default_factory=ControlNumbers)
    segment_count: int = 0

    @property
    def warnings(self) -> List[ValidationFinding]:
        return [finding for finding in self.errors if finding.severity == Severity.WARNING]

    @property
    def blocking_errors(self) -> List[ValidationFinding]:
        return [finding for finding in self.errors if finding.is_error]

    def require_content(self, claim_id: Optional[str] = None) -> str:
        """
        Return the display content, raising if the claim was rejected.

        Args:
            claim_id: Claim identifier to include in the exception message

        Returns:
            The newline-joined interchange

        Raises:
            ClaimRejectedError: If generation failed validation
        """
        if not self.success or self.edi_content is None:
            raise ClaimRejectedError(
                claim_id,
                [finding.model_dump(mode="json") for finding in self.errors],
            )
        return self.edi_content
