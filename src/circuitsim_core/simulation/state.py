# src/circuitsim_core/simulation/state.py
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable

logger = logging.getLogger(__name__)


@dataclass
class TransientState:
    """
    Mutable per-element history of one transient session.

    Owned by a single solver instance and handed by reference to the assembler on
    every step. `time` is the time of the last committed step.
    """
    time: float = 0.0
    step_count: int = 0
    capacitor_voltages: Dict[str, float] = field(default_factory=dict)
    inductor_currents: Dict[str, float] = field(default_factory=dict)
    diode_states: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def fresh(cls, capacitor_ids: Iterable[str], inductor_ids: Iterable[str],
              diode_ids: Iterable[str]) -> "TransientState":
        """Zero history: uncharged capacitors, no inductor current, every diode OFF."""
        return cls(
            capacitor_voltages={cid: 0.0 for cid in capacitor_ids},
            inductor_currents={lid: 0.0 for lid in inductor_ids},
            diode_states={did: False for did in diode_ids},
        )

    def reset(self) -> None:
        self.time = 0.0
        self.step_count = 0
        for key in self.capacitor_voltages:
            self.capacitor_voltages[key] = 0.0
        for key in self.inductor_currents:
            self.inductor_currents[key] = 0.0
        for key in self.diode_states:
            self.diode_states[key] = False
