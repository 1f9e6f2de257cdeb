"""ANSI X12 837P professional claim generation."""
from claim837.models.claim import Claim837PInput
from claim837.models.results import ControlNumbers, GenerationResult, ValidationFinding
from claim837.services.edi.generator import generate_837p
from claim837.services.edi.validator import has_errors, validate_claim

__all__ = [
    "Claim837PInput",
    "ControlNumbers",
    "GenerationResult",
    "ValidationFinding",
    "generate_837p",
    "has_errors",
    "validate_claim",
]
