# src/circuitsim_core/constants.py
import logging
from typing import Dict

logger = logging.getLogger(__name__)

# --- Numerical Constants for Analysis ---

#: Pivot magnitude below which the linear system is declared singular.
SINGULAR_PIVOT_EPSILON: float = 1.0e-12

#: Branch current (amperes) below which an ON diode is considered reverse biased.
DIODE_REVERSE_CURRENT_THRESHOLD: float = -1.0e-9

#: Series resistance of a forward-biased diode/LED in its ON state. It limits the
#: current when the diode is driven by an ideal source with no other series element.
DEFAULT_DIODE_ON_RESISTANCE: float = 0.1  # ohm

#: Leakage resistance of a reverse-biased diode/LED in its OFF state. A node bounded
#: only by OFF diodes still has a non-zero row, so the first OFF/OFF pass solves.
DEFAULT_DIODE_OFF_RESISTANCE: float = 1.0e9  # ohm

#: Upper bound on DC re-solves while the diode ON/OFF assignment settles.
DEFAULT_MAX_DIODE_ITERATIONS: int = 20

#: Resistance of a closed switch.
SWITCH_CLOSED_RESISTANCE: float = 0.01  # ohm

#: Internal resistance of an ideal ammeter.
AMMETER_RESISTANCE: float = 0.001  # ohm

#: Leakage resistance of an open switch or a voltmeter. Its conductance must stay
#: well above SINGULAR_PIVOT_EPSILON, or a node bounded only by open elements
#: would still read as singular.
OPEN_CIRCUIT_RESISTANCE: float = 1.0e9  # ohm

#: Small-signal resistance used for diodes and LEDs in an AC sweep.
DIODE_SMALL_SIGNAL_RESISTANCE: float = 100.0  # ohm

# --- Transient time-step policy ---

#: Samples per period of the fastest AC source when the time step is derived automatically.
DEFAULT_SAMPLES_PER_CYCLE: int = 100

#: Time step used when no AC source sets the time scale (DC or digital-only circuits).
DEFAULT_DC_TIME_STEP: float = 1.0 / 60.0  # seconds

#: Number of periods of the fastest AC source covered by a batch transient run.
DEFAULT_TRANSIENT_PERIODS: int = 3

#: End time of a batch transient run when there is no AC source.
DEFAULT_DC_TRANSIENT_END_TIME: float = 1.0  # seconds

# --- Animation clock ---

#: Upper bound on internal steps advanced for a single animation frame.
MAX_STEPS_PER_FRAME: int = 100

#: Wall-clock window over which `auto_time_scale` spreads the target cycles.
DEFAULT_DISPLAY_WINDOW_SECONDS: float = 10.0

#: Number of source periods shown across the display window.
DEFAULT_TARGET_CYCLES: float = 4.0

# --- Component defaults ---

#: Value assumed when a component carries no explicit `value`, keyed by kind name.
DEFAULT_COMPONENT_VALUES: Dict[str, float] = {
    "resistor": 1000.0,       # ohm
    "capacitor": 100.0e-6,    # farad
    "inductor": 10.0e-3,      # henry
    "dc_source": 5.0,         # volt
    "ac_source": 5.0,         # volt (amplitude)
    "diode": 0.7,             # volt (forward drop)
    "led": 2.0,               # volt (forward drop)
}

#: Forward voltage used for an LED with no explicit override and no known colour.
DEFAULT_LED_FORWARD_VOLTAGE: float = 2.0

#: Typical LED forward voltage by emitted colour.
LED_FORWARD_VOLTAGE_BY_COLOR: Dict[str, float] = {
    "red": 1.8,
    "orange": 2.0,
    "yellow": 2.1,
    "green": 2.2,
    "blue": 3.0,
    "white": 3.0,
}

#: AC source defaults.
DEFAULT_AC_FREQUENCY: float = 60.0  # Hz
DEFAULT_AC_PHASE: float = 0.0       # radians

# --- Digital logic ---

#: Voltage at or above which a port reads as logic HIGH.
DEFAULT_LOGIC_THRESHOLD: float = 2.5  # volt

#: Output voltage driven by a HIGH gate output.
LOGIC_HIGH_VOLTAGE: float = 5.0

#: Output voltage driven by a LOW gate output.
LOGIC_LOW_VOLTAGE: float = 0.0

logger.debug("Defined core constants for analysis, time stepping and component defaults.")
