"""
Data models for 837P generation.

- claim: the caller-assembled claim description (input)
- results: validation findings, control numbers and generation results (output)
- enums: X12 code sets shared by both
"""
from claim837.models.claim import (
    Address,
    BillingProvider,
    Claim837PInput,
    ClaimInfo,
    PatientInfo,
    PayerInfo,
    ReferringProvider,
    RenderingProvider,
    ServiceLine,
    Subscriber,
)
from claim837.models.enums import (
    ClaimFilingIndicator,
    ClaimFrequencyCode,
    Gender,
    RelationshipCode,
    Severity,
    UsageIndicator,
)
from claim837.models.results import (
    ControlNumbers,
    CounterState,
    GenerationResult,
    ValidationFinding,
)

__all__ = [
    "Address",
    "BillingProvider",
    "Claim837PInput",
    "ClaimFilingIndicator",
    "ClaimFrequencyCode",
    "ClaimInfo",
    "ControlNumbers",
    "CounterState",
    "Gender",
    "GenerationResult",
    "PatientInfo",
    "PayerInfo",
    "ReferringProvider",
    "RelationshipCode",
    "RenderingProvider",
    "ServiceLine",
    "Severity",
    "Subscriber",
    "UsageIndicator",
    "ValidationFinding",
]
