"""
Application setup and initialization.

Callers embedding the generator run ``setup_application()`` once at process
start, before the first claim is generated:
- Environment variable loading (``.env``)
- Logging configuration
- Optional seeding of the control-number sequencer from persisted state
"""
from typing import Optional

from dotenv import load_dotenv

from claim837.config import settings as settings_module
from claim837.models.results import CounterState
from claim837.services.edi import control_numbers
from claim837.utils.logger import configure_logging, get_logger


def setup_application(counter_state: Optional[CounterState] = None) -> None:
    """
    Initialize environment, logging and control-number state.

    Args:
        counter_state: Counter values persisted by the caller at the previous
            shutdown (see ``get_counter_state``). When omitted the counters
            keep their current values.

    Raises:
        ControlNumberStateError: If ``counter_state`` holds out-of-range values
    """
    # .env must be loaded before settings are rebuilt
    load_dotenv()
    settings_module.settings = settings_module.EDISettings()
    current = settings_module.settings

    configure_logging(
        log_level=current.log_level,
        log_format=current.log_format,
        log_file=current.log_file,
        log_dir=current.log_dir,
    )

    control_numbers.default_sequencer.gs_width = current.gs_control_number_width
    if counter_state is not None:
        control_numbers.initialize_counters(counter_state.isa, counter_state.gs, counter_state.st)

    get_logger(__name__).info(
        "EDI 837P generator initialized",
        gs_control_number_width=current.gs_control_number_width,
        seeded=counter_state is not None,
    )
