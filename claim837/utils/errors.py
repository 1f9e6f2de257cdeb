"""Custom exception classes."""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or "APP_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class ClaimRejectedError(AppError):
    """A claim failed validation and no interchange was produced."""

    def __init__(self, claim_id: Optional[str], findings: List[Dict[str, str]]):
        message = "Claim rejected by validation"
        if claim_id:
            message += f" (claim: {claim_id})"
        super().__init__(
            message=message,
            code="CLAIM_REJECTED",
            details={"claim_id": claim_id, "findings": findings},
        )

    @property
    def findings(self) -> List[Dict[str, str]]:
        return self.details["findings"]


class ControlNumberStateError(AppError):
    """Persisted control-number state cannot be used to seed a sequencer."""

    def __init__(self, namespace: str, value: Any, maximum: int):
        super().__init__(
            message=f"Invalid {namespace} control number seed {value!r} (expected 0..{maximum})",
            code="CONTROL_NUMBER_STATE",
            details={"namespace": namespace, "value": value, "maximum": maximum},
        )
