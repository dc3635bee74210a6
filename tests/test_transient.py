# tests/test_transient.py
import math

import numpy as np
import pytest

from circuitsim_core import ErrorKind, StreamingTransientSolver, TransientOptions, run_transient
from circuitsim_core.constants import DEFAULT_DC_TIME_STEP
from circuitsim_core.simulation import derive_time_step, max_source_frequency
from tests.conftest import ac_source, connect, dc_source, ground, led, make_component, series_loop


@pytest.fixture
def solver():
    s = StreamingTransientSolver()
    yield s
    s.dispose()


def rl_rise():
    """5 V into 100 ohm + 10 mH (tau = 100 us)."""
    return series_loop(dc_source("V1", 5.0),
                       make_component("R1", "resistor", 100.0),
                       make_component("L1", "inductor", 10e-3))


class TestInitialization:

    def test_dc_circuit_uses_default_time_step(self, solver, rc_charging):
        init = solver.initialize(*rc_charging)
        assert init.success, init.error
        assert init.max_frequency == 0.0
        assert init.time_step == pytest.approx(DEFAULT_DC_TIME_STEP)
        assert solver.get_time_step() == pytest.approx(1.0 / 60.0)
        assert solver.get_current_time() == 0.0
        assert solver.is_initialized

    def test_time_step_follows_fastest_ac_source(self, solver):
        components, wires = series_loop(ac_source("VAC", frequency=50.0), make_component("R1", "resistor"))
        slow = ac_source("VSLOW", frequency=5.0)
        components.append(slow)
        wires += connect(("VSLOW:1", "R1:1"), ("VSLOW:2", "GND:gnd"))
        init = solver.initialize(components, wires, TransientOptions(samples_per_cycle=100))
        # Two AC sources on one node conflict, but that only shows up when stepping.
        assert init.success, init.error
        assert init.max_frequency == 50.0
        assert init.time_step == pytest.approx(1.0 / 50.0 / 100)

    def test_explicit_time_step_wins(self, solver, rc_charging):
        init = solver.initialize(*rc_charging, TransientOptions(time_step=1e-3))
        assert init.time_step == 1e-3

    @pytest.mark.parametrize("bad_dt", [0.0, -1e-3, float("nan"), float("inf")])
    def test_non_positive_or_non_finite_time_step(self, solver, rc_charging, bad_dt):
        init = solver.initialize(*rc_charging, TransientOptions(time_step=bad_dt))
        assert not init.success
        assert init.error_kind is ErrorKind.CONFIGURATION
        assert not solver.is_initialized

    def test_structural_error_is_reported(self, solver):
        components = [dc_source("V1"), make_component("R1", "resistor")]
        init = solver.initialize(components, connect(("V1:1", "R1:1"), ("R1:2", "V1:2")))
        assert not init.success
        assert init.error_kind is ErrorKind.STRUCTURAL


class TestStepping:

    def test_step_batch_returns_exactly_n_samples(self, solver, rc_charging):
        solver.initialize(*rc_charging)
        dt = solver.get_time_step()
        batch = solver.step_batch(5)
        assert batch.success
        assert len(batch) == 5
        np.testing.assert_allclose([s.time for s in batch], dt * np.arange(1, 6))
        assert solver.get_current_time() == pytest.approx(5 * dt)
        assert set(batch[0].branch_currents) == {"V1", "R1", "C1"}

        assert len(solver.step_batch(0)) == 0
        assert len(solver.step_batch(3)) == 3
        assert solver.state.step_count == 8

    def test_rc_charging_matches_backward_euler_recurrence(self, solver, rc_charging):
        solver.initialize(*rc_charging)
        dt = solver.get_time_step()
        a = dt / (1000.0 * 100e-6)
        batch = solver.step_batch(30)
        v = 0.0
        for sample in batch:
            v = (v + a * 5.0) / (1.0 + a)
            assert sample.node_voltages["R1:2"] == pytest.approx(v, rel=1e-9)
            # Charging current through the resistor and into the capacitor.
            assert sample.branch_currents["R1"] == pytest.approx((5.0 - v) / 1000.0, rel=1e-9)
            assert sample.branch_currents["C1"] == pytest.approx(sample.branch_currents["R1"], rel=1e-9)
        assert solver.state.capacitor_voltages["C1"] == pytest.approx(v)

    def test_rc_charging_approaches_analytic_curve(self, solver, rc_charging):
        solver.initialize(*rc_charging, TransientOptions(time_step=1e-4))
        batch = solver.step_batch(2000)
        t = np.array([s.time for s in batch])
        v = np.array([s.node_voltages["R1:2"] for s in batch])
        np.testing.assert_allclose(v, 5.0 * (1.0 - np.exp(-t / 0.1)), atol=5e-3)

    def test_rl_current_rise(self, solver):
        solver.initialize(*rl_rise(), TransientOptions(time_step=1e-6))
        batch = solver.step_batch(500)
        t = np.array([s.time for s in batch])
        i = np.array([s.branch_currents["L1"] for s in batch])
        np.testing.assert_allclose(i, 0.05 * (1.0 - np.exp(-t / 1e-4)), atol=5e-4)
        assert solver.state.inductor_currents["L1"] == pytest.approx(i[-1])

    def test_ac_source_drives_its_waveform(self, solver):
        components, wires = series_loop(ac_source("VAC", amplitude=5.0, frequency=50.0),
                                        make_component("R1", "resistor", 1000.0))
        solver.initialize(components, wires)
        batch = solver.step_batch(100)
        t = np.array([s.time for s in batch])
        i = np.array([s.branch_currents["R1"] for s in batch])
        np.testing.assert_allclose(i, 5.0 * np.sin(2 * math.pi * 50.0 * t) / 1000.0, atol=1e-12)

    def test_half_wave_rectifier(self, solver):
        components, wires = series_loop(ac_source("VAC", amplitude=5.0, frequency=50.0),
                                        make_component("D1", "diode"),
                                        make_component("R1", "resistor", 100.0))
        solver.initialize(components, wires)
        batch = solver.step_batch(200)
        currents = np.array([s.branch_currents["R1"] for s in batch])
        assert currents.max() == pytest.approx((5.0 - 0.7) / 100.1, rel=1e-3)
        # States are updated once per step, so a diode can lag by one step when turning off.
        assert np.count_nonzero(currents < -1e-6) <= 2
        # A blocking diode only passes its nanoampere leakage.
        assert np.count_nonzero(np.abs(currents) < 1e-8) > 80

    def test_leds_in_series_switch_on_after_one_step(self, solver):
        components, wires = series_loop(dc_source("V1", 9.0), led("D1"), led("D2"),
                                        make_component("R1", "resistor", 100.0))
        init = solver.initialize(components, wires)
        assert init.success, init.error
        batch = solver.step_batch(3)
        assert batch.success, batch.error
        # Both start OFF; the leakage solve puts 4.5 V across each, so both turn ON.
        assert batch[0].branch_currents["R1"] == pytest.approx(9.0 / (2e9 + 100.0))
        assert solver.state.diode_states == {"D1": True, "D2": True}
        expected = (9.0 - 4.0) / (100.0 + 0.2)
        for sample in batch.samples[1:]:
            assert sample.branch_currents["R1"] == pytest.approx(expected)
            assert sample.branch_currents["D2"] == pytest.approx(expected)

    def test_reset_restarts_from_zero_history(self, solver, rc_charging):
        solver.initialize(*rc_charging)
        first = solver.step_batch(10)
        solver.reset()
        assert solver.get_current_time() == 0.0
        assert solver.state.capacitor_voltages["C1"] == 0.0
        again = solver.step_batch(10)
        for a, b in zip(first, again):
            assert a.time == b.time
            assert a.branch_currents == pytest.approx(b.branch_currents)

    def test_singular_step_keeps_history(self, solver):
        components = [dc_source("V1", 5.0), dc_source("V2", 3.0), make_component("R1", "resistor"), ground()]
        wires = connect(("V1:1", "V2:1"), ("V1:1", "R1:1"), ("R1:2", "GND:gnd"),
                        ("V1:2", "GND:gnd"), ("V2:2", "GND:gnd"))
        assert solver.initialize(components, wires).success
        batch = solver.step_batch(3)
        assert not batch.success
        assert batch.error_kind is ErrorKind.NUMERIC
        assert len(batch) == 0
        assert "transient" in batch.error
        assert solver.get_current_time() == 0.0


class TestLifecycleErrors:

    def test_stepping_before_initialize(self, solver):
        batch = solver.step_batch(1)
        assert not batch.success
        assert batch.error_kind is ErrorKind.CONFIGURATION
        assert "not initialized" in batch.error

    def test_stepping_after_dispose(self, solver, rc_charging):
        solver.initialize(*rc_charging)
        solver.dispose()
        batch = solver.step_batch(1)
        assert not batch.success
        assert "disposed" in batch.error
        assert solver.get_time_step() is None

    def test_reinitialize_after_dispose(self, solver, rc_charging):
        solver.initialize(*rc_charging)
        solver.stop()
        assert solver.initialize(*rc_charging).success
        assert solver.step_batch(2).success

    @pytest.mark.parametrize("n", [-1, 2.5, True])
    def test_invalid_step_count(self, solver, rc_charging, n):
        solver.initialize(*rc_charging)
        batch = solver.step_batch(n)
        assert not batch.success
        assert batch.error_kind is ErrorKind.CONFIGURATION


class TestTimeStepPolicy:

    def test_derive_time_step(self):
        assert derive_time_step(TransientOptions(), 0.0) == pytest.approx(1.0 / 60.0)
        assert derive_time_step(TransientOptions(), 1000.0) == pytest.approx(1e-5)
        assert derive_time_step(TransientOptions(samples_per_cycle=20), 1000.0) == pytest.approx(5e-5)
        assert derive_time_step(TransientOptions(time_step=1e-3), 1000.0) == 1e-3

    def test_max_source_frequency(self):
        components = [ac_source("A", frequency=50.0), ac_source("B", frequency=1e3), dc_source("V1")]
        assert max_source_frequency(components) == 1e3
        assert max_source_frequency([dc_source("V1")]) == 0.0


class TestRunTransient:

    def test_dc_circuit_runs_one_second(self, rc_charging):
        result = run_transient(*rc_charging)
        assert result.success, result.error
        assert len(result.time_points) == 60
        assert result.time_points[-1] == pytest.approx(1.0)
        assert result.node_voltages["R1:2"].shape == (60,)
        assert result.node_voltages["R1:2"][-1] == pytest.approx(5.0, abs=0.01)

    def test_default_end_time_is_three_periods(self):
        components, wires = series_loop(ac_source("VAC", frequency=50.0), make_component("R1", "resistor"))
        result = run_transient(components, wires)
        assert result.success, result.error
        assert result.max_frequency == 50.0
        assert len(result.time_points) == 300
        assert result.time_points[-1] == pytest.approx(3 / 50.0)

    def test_invalid_end_time(self, rc_charging):
        result = run_transient(*rc_charging, end_time=-1.0)
        assert not result.success
        assert result.error_kind is ErrorKind.CONFIGURATION

    def test_failed_initialization(self):
        result = run_transient([], [])
        assert not result.success
        assert result.error_kind is ErrorKind.STRUCTURAL
