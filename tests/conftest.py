# tests/conftest.py
import pytest

from circuitsim_core import (
    AcSourceParams,
    Component,
    ComponentKind,
    LedParams,
    LogicInputs,
    SwitchParams,
    Wire,
)
from circuitsim_core.parser import default_ports


def make_component(comp_id: str, kind, value=None, ports=None, **extras) -> Component:
    """
    Builds a Component with the parser's default port names ("1"/"2" for
    two-terminal elements, "gnd" for ground, A/B/Y for gates).
    extras: ac=..., led=..., switch=..., logic=...
    """
    kind = ComponentKind(kind) if not isinstance(kind, ComponentKind) else kind
    return Component(
        id=comp_id,
        kind=kind,
        ports=tuple(ports) if ports is not None else default_ports(kind),
        value=value,
        **extras,
    )


def make_wire(a: str, b: str, wire_id: str = None) -> Wire:
    """Wire between two "componentId:portId" endpoints."""
    a_comp, _, a_port = a.rpartition(":")
    b_comp, _, b_port = b.rpartition(":")
    return Wire(id=wire_id or f"{a}->{b}", from_component=a_comp, from_port=a_port,
                to_component=b_comp, to_port=b_port)


def connect(*pairs) -> list:
    """make_wire for every (a, b) pair, with ids W1, W2, ..."""
    return [make_wire(a, b, f"W{i + 1}") for i, (a, b) in enumerate(pairs)]


def ground(comp_id: str = "GND") -> Component:
    return make_component(comp_id, "ground")


def dc_source(comp_id: str = "V1", volts: float = 5.0) -> Component:
    return make_component(comp_id, "dc_source", volts)


def ac_source(comp_id: str = "VAC", amplitude: float = 5.0, frequency: float = 60.0, **params) -> Component:
    return make_component(comp_id, "ac_source", amplitude, ac=AcSourceParams(frequency=frequency, **params))


def led(comp_id: str = "D1", color=None, override=None, value=None) -> Component:
    return make_component(comp_id, "led", value, led=LedParams(color=color, forward_voltage_override=override))


def switch(comp_id: str = "S1", closed: bool = False) -> Component:
    return make_component(comp_id, "switch", switch=SwitchParams(closed=closed))


def gate(comp_id: str, kind: str, a=None, b=None) -> Component:
    return make_component(comp_id, kind, logic=LogicInputs(input_a=a, input_b=b))


def series_loop(source: Component, *elements: Component, gnd: Component = None):
    """
    source(+) -> elements[0] -> ... -> elements[-1] -> ground, with the source's
    negative terminal also on ground. Returns (components, wires).
    """
    gnd = gnd or ground()
    chain = [f"{source.id}:1"]
    pairs = []
    for element in elements:
        pairs.append((chain[-1], f"{element.id}:1"))
        chain.append(f"{element.id}:2")
    pairs.append((chain[-1], f"{gnd.id}:gnd"))
    pairs.append((f"{source.id}:2", f"{gnd.id}:gnd"))
    return [source, *elements, gnd], connect(*pairs)


def parallel_loop(source: Component, *elements: Component, gnd: Component = None):
    """Every element directly across the source, source(-) on ground. Returns (components, wires)."""
    gnd = gnd or ground()
    pairs = []
    for element in elements:
        pairs.append((f"{source.id}:1", f"{element.id}:1"))
        pairs.append((f"{element.id}:2", f"{gnd.id}:gnd"))
    pairs.append((f"{source.id}:2", f"{gnd.id}:gnd"))
    return [source, *elements, gnd], connect(*pairs)


# --- Reference circuits ---

@pytest.fixture
def voltage_divider():
    """5 V across two 1 kohm resistors in series."""
    return series_loop(dc_source("V1", 5.0),
                       make_component("R1", "resistor", 1000.0),
                       make_component("R2", "resistor", 1000.0))


@pytest.fixture
def parallel_resistors():
    """10 V across two 1 kohm resistors in parallel."""
    return parallel_loop(dc_source("V1", 10.0),
                         make_component("R1", "resistor", 1000.0),
                         make_component("R2", "resistor", 1000.0))


@pytest.fixture
def rl_series():
    """5 V, 10 mH and 1 kohm in series."""
    return series_loop(dc_source("V1", 5.0),
                       make_component("L1", "inductor", 10e-3),
                       make_component("R1", "resistor", 1000.0))


@pytest.fixture
def rc_parallel():
    """5 V across a 100 uF capacitor and a 1 kohm resistor in parallel."""
    return parallel_loop(dc_source("V1", 5.0),
                         make_component("C1", "capacitor", 100e-6),
                         make_component("R1", "resistor", 1000.0))


@pytest.fixture
def led_series():
    """5 V, LED (2.0 V) and 100 ohm in series."""
    return series_loop(dc_source("V1", 5.0), led("D1"), make_component("R1", "resistor", 100.0))


@pytest.fixture
def rc_charging():
    """5 V step into 1 kohm + 100 uF (tau = 0.1 s); the capacitor sits on ground."""
    return series_loop(dc_source("V1", 5.0),
                       make_component("R1", "resistor", 1000.0),
                       make_component("C1", "capacitor", 100e-6))
