"""
Structured logging configuration.

Log events carry claim ids, field paths and control numbers. Claim content
that identifies a person never belongs in an event; ``redact_phi`` is the
last processor before rendering and masks any such key that slips in.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from structlog.stdlib import LoggerFactory

REDACTION_MARKER = "[REDACTED]"

# Claim input attributes that identify a subscriber, patient or provider
PHI_LOG_KEYS = frozenset(
    {
        "member_id",
        "group_number",
        "first_name",
        "last_name",
        "middle_name",
        "date_of_birth",
        "address",
        "line1",
        "line2",
        "zip",
        "tax_id",
        "contact_name",
        "contact_phone",
        "contact_email",
        "prior_auth_number",
        "referral_number",
        "claim_note",
        "edi_content",
        "wire_content",
    }
)


def redact_phi(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    structlog processor masking claim PHI keys.

    Keys are matched after lowercasing and converting camelCase input names
    (``memberId``) to their snake_case attribute names.
    """
    for key in list(event_dict):
        if _snake_case(key) in PHI_LOG_KEYS:
            event_dict[key] = REDACTION_MARKER
    return event_dict


def _snake_case(key: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in key).lstrip("_")


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    log_dir: str = "logs",
) -> None:
    """
    Configure structured logging for the generator.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "console")
        log_file: Optional log file name (if None, logs to stdout)
        log_dir: Directory for log files (default: "logs")
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        redact_phi,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []
    root_logger.addHandler(_build_handler(level, log_file, log_dir))


def _build_handler(level: int, log_file: Optional[str], log_dir: str) -> logging.Handler:
    """One handler: a rotating file when ``log_file`` is set, otherwise stdout."""
    if log_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            log_path / log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=10,
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def get_logger(name: str) -> Any:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
