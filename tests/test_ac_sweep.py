# tests/test_ac_sweep.py
import math

import numpy as np
import pytest

from circuitsim_core import ACSweepAnalyzer, ErrorKind, run_ac_sweep
from tests.conftest import ac_source, connect, dc_source, ground, make_component, series_loop


def rc_lowpass():
    """1 V AC through 1 kohm into 1 uF to ground; corner at 1/(2*pi*RC) ~ 159 Hz."""
    return series_loop(ac_source("VAC", amplitude=1.0),
                       make_component("R1", "resistor", 1000.0),
                       make_component("C1", "capacitor", 1e-6))


class TestACSweep:

    def test_rc_lowpass_transfer_function(self):
        freqs = np.array([10.0, 159.15494309189535, 1e4])
        result = run_ac_sweep(*rc_lowpass(), frequencies=freqs)
        assert result.success, result.error
        np.testing.assert_array_equal(result.frequencies, freqs)

        out = result.node_voltages["R1:2"]
        expected = 1.0 / (1.0 + 1j * 2 * math.pi * freqs * 1000.0 * 1e-6)
        np.testing.assert_allclose(out.values, expected, rtol=1e-9)
        # -3 dB and -45 degrees at the corner.
        assert out.magnitude[1] == pytest.approx(1 / math.sqrt(2), rel=1e-6)
        assert out.phase_deg[1] == pytest.approx(-45.0, abs=1e-6)

    def test_series_rl_current_and_impedances(self):
        components, wires = series_loop(ac_source("VAC", amplitude=2.0),
                                        make_component("R1", "resistor", 100.0),
                                        make_component("L1", "inductor", 10e-3))
        f = 1591.5494309189535  # omega * L = 100 ohm
        result = run_ac_sweep(components, wires, frequencies=[f])
        assert result.success, result.error
        current = result.branch_currents["L1"].values[0]
        assert abs(current) == pytest.approx(2.0 / math.hypot(100.0, 100.0), rel=1e-9)
        assert math.degrees(np.angle(current)) == pytest.approx(-45.0, abs=1e-6)
        assert result.impedances["L1"].values[0] == pytest.approx(100j, rel=1e-9)
        assert result.impedances["R1"].values[0] == pytest.approx(100.0)

    def test_source_phase_rotates_the_response(self):
        components, wires = series_loop(ac_source("VAC", amplitude=1.0, phase=math.pi / 2),
                                        make_component("R1", "resistor", 50.0))
        result = run_ac_sweep(components, wires, frequencies=[100.0])
        assert result.node_voltages["VAC:1"].phase_deg[0] == pytest.approx(90.0)
        assert result.node_voltages["VAC:1"].magnitude[0] == pytest.approx(1.0)

    def test_dc_sources_are_shorted(self):
        components = [ac_source("VAC", amplitude=1.0), dc_source("VDC", 9.0),
                      make_component("R1", "resistor", 100.0), ground()]
        wires = connect(("VAC:1", "VDC:2"), ("VDC:1", "R1:1"), ("R1:2", "GND:gnd"), ("VAC:2", "GND:gnd"))
        result = run_ac_sweep(components, wires, frequencies=[1e3])
        assert result.success, result.error
        assert result.branch_currents["R1"].magnitude[0] == pytest.approx(1.0 / 100.0)

    def test_default_sweep_is_decade_1hz_to_1mhz(self):
        result = ACSweepAnalyzer(*rc_lowpass()).analyze()
        assert result.success, result.error
        assert result.frequencies.size == 61
        assert result.frequencies[0] == pytest.approx(1.0)
        assert result.frequencies[-1] == pytest.approx(1e6)

    def test_sweep_config_mapping(self):
        sweep = {"type": "linear", "start": "1 kHz", "stop": "2 kHz", "num_points": 3}
        result = run_ac_sweep(*rc_lowpass(), frequencies=sweep)
        np.testing.assert_allclose(result.frequencies, [1e3, 1.5e3, 2e3])

    @pytest.mark.parametrize("bad", [[], [-1.0], {"type": "log", "start": "0 Hz", "stop": "1 kHz", "num_points": 5}])
    def test_invalid_frequencies(self, bad):
        result = run_ac_sweep(*rc_lowpass(), frequencies=bad)
        assert not result.success
        assert result.error_kind is ErrorKind.CONFIGURATION

    def test_structural_errors_propagate_as_values(self):
        result = run_ac_sweep([], [], frequencies=[1.0])
        assert not result.success
        assert result.error_kind is ErrorKind.STRUCTURAL

    def test_capacitor_blocks_at_zero_frequency(self):
        components, wires = series_loop(ac_source("VAC", amplitude=1.0),
                                        make_component("C1", "capacitor", 1e-6),
                                        make_component("R1", "resistor", 1000.0))
        result = run_ac_sweep(components, wires, frequencies=[0.0, 1e6])
        assert result.success, result.error
        assert result.branch_currents["R1"].magnitude[0] == pytest.approx(0.0, abs=1e-15)
        assert result.branch_currents["R1"].magnitude[1] == pytest.approx(1e-3, rel=1e-3)
