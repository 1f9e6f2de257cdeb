"""
Control-number sequencing for ISA, GS and ST envelopes.

Each namespace is an independent counter that increments before use and
wraps back to 1 after its maximum:

- ISA13: 1..999999999, 9 digits
- GS06:  1..999999999, padded to ``gs_control_number_width`` (6 by default)
- ST02:  1..9999, 4 digits

A duplicate ISA13 can make a clearinghouse drop a claim as a resubmission,
so every increment happens under one lock. State lives in memory only; the
caller persists ``get_state()`` at shutdown and seeds ``initialize()`` at
boot.
"""
import threading
from typing import Optional

from claim837.config.settings import get_settings
from claim837.models.results import ControlNumbers, CounterState
from claim837.utils.errors import ControlNumberStateError
from claim837.utils.logger import get_logger

logger = get_logger(__name__)

ISA_MAX = 999_999_999
GS_MAX = 999_999_999
ST_MAX = 9_999

ISA_WIDTH = 9
DEFAULT_GS_WIDTH = 6
ST_WIDTH = 4


def _next_value(current: int, maximum: int) -> int:
    return (current % maximum) + 1


class ControlNumberSequencer:
    """Monotonic, wrapping control-number counters for one interchange sender."""

    def __init__(self, gs_width: int = DEFAULT_GS_WIDTH, state: Optional[CounterState] = None):
        """
        Args:
            gs_width: Zero-padded width of GS06 control numbers
            state: Optional counters to resume from
        """
        self.gs_width = gs_width
        self._lock = threading.Lock()
        self._isa = 0
        self._gs = 0
        self._st = 0
        if state is not None:
            self.initialize(state.isa, state.gs, state.st)

    def next_isa_control_number(self) -> str:
        """Advance the interchange counter and return it as 9 digits."""
        with self._lock:
            self._isa = self._advance("isa", self._isa, ISA_MAX)
            return str(self._isa).zfill(ISA_WIDTH)

    def next_gs_control_number(self) -> str:
        """Advance the functional group counter and return it zero-padded."""
        with self._lock:
            self._gs = self._advance("gs", self._gs, GS_MAX)
            return str(self._gs).zfill(self.gs_width)

    def next_st_control_number(self) -> str:
        """Advance the transaction set counter and return it as 4 digits."""
        with self._lock:
            self._st = self._advance("st", self._st, ST_MAX)
            return str(self._st).zfill(ST_WIDTH)

    def next_control_numbers(self) -> ControlNumbers:
        """Draw one number from each namespace atomically."""
        with self._lock:
            self._isa = self._advance("isa", self._isa, ISA_MAX)
            self._gs = self._advance("gs", self._gs, GS_MAX)
            self._st = self._advance("st", self._st, ST_MAX)
            return ControlNumbers(
                isa_control_number=str(self._isa).zfill(ISA_WIDTH),
                gs_control_number=str(self._gs).zfill(self.gs_width),
                st_control_number=str(self._st).zfill(ST_WIDTH),
            )

    def get_state(self) -> CounterState:
        """Return the raw counters for external persistence."""
        with self._lock:
            return CounterState(isa=self._isa, gs=self._gs, st=self._st)

    def initialize(self, isa: int, gs: int, st: int) -> None:
        """
        Seed all three counters from persisted state.

        The next number drawn in each namespace is the seed plus one.

        Raises:
            ControlNumberStateError: If a seed is not an integer in 0..maximum
        """
        _check_seed("isa", isa, ISA_MAX)
        _check_seed("gs", gs, GS_MAX)
        _check_seed("st", st, ST_MAX)
        with self._lock:
            self._isa, self._gs, self._st = isa, gs, st
        logger.info("Control number counters initialized", isa=isa, gs=gs, st=st)

    def reset(self) -> None:
        """Set all counters to zero. Test isolation only."""
        with self._lock:
            self._isa = self._gs = self._st = 0
        logger.debug("Control number counters reset")

    @staticmethod
    def _advance(namespace: str, current: int, maximum: int) -> int:
        value = _next_value(current, maximum)
        if value < current:
            logger.warning("Control number wrapped", namespace=namespace, maximum=maximum)
        return value


def _check_seed(namespace: str, value: int, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise ControlNumberStateError(namespace, value, maximum)


# Process-wide default used when a caller does not inject its own sequencer
default_sequencer = ControlNumberSequencer(gs_width=get_settings().gs_control_number_width)


def generate_isa_control_number() -> str:
    return default_sequencer.next_isa_control_number()


def generate_gs_control_number() -> str:
    return default_sequencer.next_gs_control_number()


def generate_st_control_number() -> str:
    return default_sequencer.next_st_control_number()


def get_counter_state() -> CounterState:
    return default_sequencer.get_state()


def initialize_counters(isa: int, gs: int, st: int) -> None:
    default_sequencer.initialize(isa, gs, st)


def reset_counters() -> None:
    default_sequencer.reset()
