"""EDI interchange and logging settings.

Values are read from the environment (prefix ``EDI_``) or a ``.env`` file.
Delimiters are not configurable here; they are fixed for the 005010X222A1
interchanges this package produces (see ``claim837.services.edi.formatters``).
"""
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

ALLOWED_LOG_FORMATS = {"json", "console"}


class EDISettings(BaseSettings):
    """Interchange envelope settings."""

    # GS06 allows up to 9 digits; downstream reconciliation expects 6
    gs_control_number_width: int = Field(
        default=6,
        ge=4,
        le=9,
        description="Zero-padded width of GS06/GE02 group control numbers.",
    )
    interchange_id_qualifier: str = Field(
        default="ZZ",
        min_length=2,
        max_length=2,
        description="ISA05/ISA07 interchange ID qualifier (ZZ = mutually defined).",
    )
    acknowledgment_requested: str = Field(
        default="0",
        pattern=r"^[01]$",
        description="ISA14: 0 = no TA1 requested, 1 = TA1 requested.",
    )
    display_line_break: str = Field(
        default="\n",
        description="Separator placed between segments in the display form of the interchange.",
    )

    log_level: str = Field(default="INFO", description="Root log level.")
    log_format: str = Field(default="json", description="json or console.")
    log_file: Optional[str] = Field(default=None, description="Log file name; stdout when unset.")
    log_dir: str = Field(default="logs", description="Directory for log files.")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only the renderers configure_logging knows about are accepted."""
        v = v.lower()
        if v not in ALLOWED_LOG_FORMATS:
            raise ValueError(
                f"Log format '{v}' is not supported. "
                f"Allowed formats: {', '.join(sorted(ALLOWED_LOG_FORMATS))}"
            )
        return v

    @field_validator("display_line_break")
    @classmethod
    def validate_display_line_break(cls, v: str) -> str:
        if v.strip():
            raise ValueError("display_line_break may only contain whitespace")
        return v

    class Config:
        env_file = ".env"
        env_prefix = "EDI_"
        case_sensitive = False
        extra = "ignore"


settings = EDISettings()


def get_settings() -> EDISettings:
    """Return the process-wide settings instance."""
    return settings
