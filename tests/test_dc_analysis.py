# tests/test_dc_analysis.py
import numpy as np
import pytest

from circuitsim_core import (
    AnalysisOptions,
    DCAnalyzer,
    ErrorKind,
    StructuralIssueCode,
    TopologyBuilder,
    run_dc_analysis,
)
from circuitsim_core.simulation import MnaAssembler, assemble
from tests.conftest import (
    ac_source, connect, dc_source, gate, ground, led, make_component, make_wire, series_loop, switch,
)


class TestReferenceCircuits:

    def test_series_resistors(self, voltage_divider):
        result = run_dc_analysis(*voltage_divider)
        assert result.success, result.error
        assert result.converged
        assert result.branch_currents["R1"] == pytest.approx(2.5e-3)
        assert result.branch_currents["R2"] == pytest.approx(2.5e-3)
        # The source delivers power, so its port-1 to port-2 current is negative.
        assert result.branch_currents["V1"] == pytest.approx(-2.5e-3)
        assert result.port_voltages["R1:2"] == pytest.approx(2.5)
        assert result.port_voltages["V1:1"] == pytest.approx(5.0)

    def test_parallel_resistors(self, parallel_resistors):
        result = run_dc_analysis(*parallel_resistors)
        assert result.success, result.error
        assert result.branch_currents["R1"] == pytest.approx(10e-3)
        assert result.branch_currents["R2"] == pytest.approx(10e-3)
        # KCL at the source node.
        assert result.branch_currents["V1"] == pytest.approx(-(result.branch_currents["R1"] + result.branch_currents["R2"]))

    def test_inductor_is_a_short_at_dc(self, rl_series):
        result = run_dc_analysis(*rl_series)
        assert result.success, result.error
        assert result.branch_currents["L1"] == pytest.approx(5e-3)
        assert result.branch_currents["R1"] == pytest.approx(5e-3)
        assert result.port_voltages["L1:1"] == pytest.approx(result.port_voltages["L1:2"])

    def test_capacitor_is_open_at_dc(self, rc_parallel):
        result = run_dc_analysis(*rc_parallel)
        assert result.success, result.error
        assert result.branch_currents["R1"] == pytest.approx(5e-3)
        assert result.branch_currents["C1"] == 0.0

    def test_led_with_series_resistor(self, led_series):
        result = run_dc_analysis(*led_series)
        assert result.success, result.error
        assert result.converged
        assert result.diode_states == {"D1": True}
        expected = (5.0 - 2.0) / (100.0 + AnalysisOptions().diode_on_resistance)
        assert result.branch_currents["D1"] == pytest.approx(expected)
        assert result.branch_currents["R1"] == pytest.approx(expected)
        assert result.branch_currents["D1"] == pytest.approx(30e-3, rel=1e-2)


class TestDiodeModel:

    def test_reverse_biased_diode_stays_off(self):
        diode = make_component("D1", "diode", ports=("1", "2"))
        components, wires = series_loop(dc_source("V1"), make_component("R1", "resistor", 100.0), diode)
        # Flip the diode: cathode towards the source.
        wires = connect(("V1:1", "R1:1"), ("R1:2", "D1:2"), ("D1:1", "GND:gnd"), ("V1:2", "GND:gnd"))
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        assert result.diode_states == {"D1": False}
        # Only the OFF-state leakage flows, and the diode reports it.
        leakage = -5.0 / (100.0 + AnalysisOptions().diode_off_resistance)
        assert result.branch_currents["D1"] == pytest.approx(leakage)
        assert result.branch_currents["R1"] == pytest.approx(-leakage)

    def test_led_colour_sets_forward_voltage(self):
        components, wires = series_loop(dc_source("V1"), led("D1", color="blue"),
                                        make_component("R1", "resistor", 100.0))
        result = run_dc_analysis(components, wires)
        assert result.branch_currents["D1"] == pytest.approx(2.0 / 100.1)

    def test_led_override_beats_colour(self):
        components, wires = series_loop(dc_source("V1"), led("D1", color="blue", override=1.0),
                                        make_component("R1", "resistor", 100.0))
        result = run_dc_analysis(components, wires)
        assert result.branch_currents["D1"] == pytest.approx(4.0 / 100.1)

    def test_source_below_forward_voltage_leaves_led_off(self):
        components, wires = series_loop(dc_source("V1", 1.5), led("D1", color="red"),
                                        make_component("R1", "resistor", 100.0))
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        assert result.diode_states == {"D1": False}
        assert result.branch_currents["R1"] == pytest.approx(0.0, abs=1e-8)

    def test_leds_in_series_start_from_leakage(self):
        components, wires = series_loop(dc_source("V1", 9.0), led("D1"), led("D2"),
                                        make_component("R1", "resistor", 100.0))
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        assert result.converged
        assert result.diode_states == {"D1": True, "D2": True}
        expected = (9.0 - 2.0 - 2.0) / (100.0 + 2 * 0.1)
        for comp_id in ("D1", "D2", "R1"):
            assert result.branch_currents[comp_id] == pytest.approx(expected)
        assert result.port_voltages["D1:2"] == pytest.approx(9.0 - 2.0 - 0.1 * expected)

    def test_invalid_led_override_is_a_component_error(self):
        components, wires = series_loop(dc_source("V1"), led("D1", override=float("nan")),
                                        make_component("R1", "resistor", 100.0))
        result = run_dc_analysis(components, wires)
        assert not result.success
        assert result.error_kind is ErrorKind.COMPONENT
        assert "D1" in result.error

    def test_iteration_cap_reports_non_convergence(self, led_series):
        # One solve is not enough to switch the LED on and confirm it.
        result = DCAnalyzer(*led_series, options=AnalysisOptions(max_diode_iterations=1)).analyze()
        assert result.success
        assert not result.converged
        assert result.iterations == 1
        [warning] = result.warnings
        assert warning.code == StructuralIssueCode.DIODE_NOT_CONVERGED.code
        assert "two-state diode model" in warning.message


class TestSwitchesAndMeters:

    def test_closed_switch_and_ammeter_conduct(self):
        components, wires = series_loop(dc_source("V1"), switch("S1", closed=True),
                                        make_component("A1", "ammeter"), make_component("R1", "resistor", 1000.0))
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        expected = 5.0 / (1000.0 + 0.01 + 0.001)
        assert result.branch_currents["A1"] == pytest.approx(expected)
        assert result.branch_currents["S1"] == pytest.approx(expected)

    def test_voltmeter_draws_no_current(self, voltage_divider):
        components, wires = voltage_divider
        components = components + [make_component("VM", "voltmeter")]
        wires = wires + connect(("VM:1", "R2:1"), ("VM:2", "GND:gnd"))
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        assert result.branch_currents["VM"] == 0.0
        assert result.port_voltages["VM:1"] == pytest.approx(2.5, rel=1e-5)

    def test_voltmeter_with_a_dangling_lead(self, voltage_divider):
        components, wires = voltage_divider
        components = components + [make_component("VM", "voltmeter")]
        wires = wires + [make_wire("VM:1", "R1:1", "W_VM")]
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        assert result.branch_currents["VM"] == 0.0
        assert result.port_voltages["VM:2"] == pytest.approx(5.0)

    def test_open_switches_in_series_leave_a_solvable_node(self):
        components = [dc_source("V1"), make_component("R1", "resistor", 1000.0),
                      make_component("R2", "resistor", 1000.0), switch("S1"), switch("S2"), ground()]
        wires = connect(("V1:1", "R1:1"), ("R1:2", "R2:1"), ("R2:2", "GND:gnd"),
                        ("R1:2", "S1:1"), ("S1:2", "S2:1"), ("S2:2", "GND:gnd"), ("V1:2", "GND:gnd"))
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        assert result.branch_currents["S1"] == 0.0
        assert result.branch_currents["S2"] == 0.0
        assert result.branch_currents["R2"] == pytest.approx(2.5e-3, rel=1e-5)
        # The node between the switches sits halfway along two equal leakage paths.
        assert result.port_voltages["S1:2"] == pytest.approx(1.25, rel=1e-5)

    def test_open_switch_is_a_structural_error(self):
        components, wires = series_loop(dc_source("V1"), switch("S1"), make_component("R1", "resistor"))
        result = run_dc_analysis(components, wires)
        assert not result.success
        assert result.error_kind is ErrorKind.STRUCTURAL
        assert "S1" in result.error


class TestFailures:

    def test_conflicting_sources_are_singular(self):
        components = [dc_source("V1", 5.0), dc_source("V2", 3.0), make_component("R1", "resistor"), ground()]
        wires = connect(("V1:1", "V2:1"), ("V1:1", "R1:1"), ("R1:2", "GND:gnd"),
                        ("V1:2", "GND:gnd"), ("V2:2", "GND:gnd"))
        result = run_dc_analysis(components, wires)
        assert not result.success
        assert result.error_kind is ErrorKind.NUMERIC
        assert "DC" in result.error
        assert "Singular Matrix" in result.diagnostic_report

    def test_missing_and_isolated_ground_are_distinguished(self):
        components = [dc_source("V1"), make_component("R1", "resistor")]
        loop = connect(("V1:1", "R1:1"), ("R1:2", "V1:2"))

        missing = run_dc_analysis(components, loop)
        isolated = run_dc_analysis(components + [ground()], loop)

        assert not missing.success and not isolated.success
        assert missing.error_kind is isolated.error_kind is ErrorKind.STRUCTURAL
        assert "GND_MISSING" in missing.diagnostic_report
        assert "GND_ISOLATED" in isolated.diagnostic_report
        assert missing.error != isolated.error

    def test_no_source(self):
        components = [make_component("R1", "resistor"), ground()]
        result = run_dc_analysis(components, connect(("R1:1", "GND:gnd"), ("R1:2", "GND:gnd")))
        assert not result.success
        assert "no independent voltage source" in result.error

    def test_empty_circuit(self):
        result = run_dc_analysis([], [])
        assert not result.success
        assert result.error_kind is ErrorKind.STRUCTURAL

    def test_invalid_value_is_a_component_error(self):
        components, wires = series_loop(dc_source("V1"), make_component("R1", "resistor", -5.0))
        result = run_dc_analysis(components, wires)
        assert not result.success
        assert result.error_kind is ErrorKind.COMPONENT
        assert "R1" in result.error

    def test_invalid_options_are_a_configuration_error(self, voltage_divider):
        result = DCAnalyzer(*voltage_divider, options=AnalysisOptions(max_diode_iterations=0)).analyze()
        assert not result.success
        assert result.error_kind is ErrorKind.CONFIGURATION

    def test_floating_node_behind_open_capacitor_is_singular(self):
        components, wires = series_loop(dc_source("V1"), make_component("C1", "capacitor"),
                                        make_component("C2", "capacitor"))
        result = run_dc_analysis(components, wires)
        assert not result.success
        assert result.error_kind is ErrorKind.NUMERIC

    def test_gmin_resolves_floating_node(self):
        components, wires = series_loop(dc_source("V1"), make_component("C1", "capacitor"),
                                        make_component("C2", "capacitor"))
        result = run_dc_analysis(components, wires, AnalysisOptions(gmin=1e-9))
        assert result.success, result.error
        assert result.port_voltages["C1:2"] == pytest.approx(0.0, abs=1e-9)


class TestAssembly:

    def test_matrix_size_is_nodes_plus_auxiliary_currents(self, rl_series):
        components, wires = rl_series
        topo = TopologyBuilder().build(components, wires)
        assembler = MnaAssembler(topo, components)
        # Two non-ground nodes; the source and the inductor each add a current.
        assert assembler.num_nodes == 2
        assert assembler.num_aux == 2
        A, b, stamp_index = assemble(topo, components)
        assert A.shape == (4, 4)
        assert b.shape == (4,)
        assert set(stamp_index) == {"V1", "L1", "R1"}

    def test_diode_keeps_its_auxiliary_current_in_both_states(self, led_series):
        components, wires = led_series
        topo = TopologyBuilder().build(components, wires)
        assembler = MnaAssembler(topo, components)
        off = assembler.assemble({"D1": False}).A
        on = assembler.assemble({"D1": True}).A
        assert off.shape == on.shape
        stamp = assembler.stamp_index["D1"]
        # OFF: V(n1) - V(n2) - R_off * i = 0.
        expected_row = np.zeros(assembler.size)
        expected_row[stamp.node1] = 1.0
        expected_row[stamp.node2] = -1.0
        expected_row[stamp.aux_index] = -AnalysisOptions().diode_off_resistance
        np.testing.assert_array_equal(off[stamp.aux_index], expected_row)
        assert on[stamp.aux_index, stamp.aux_index] == -AnalysisOptions().diode_on_resistance

    def test_each_assembly_starts_from_zero(self, voltage_divider):
        components, wires = voltage_divider
        topo = TopologyBuilder().build(components, wires)
        assembler = MnaAssembler(topo, components)
        first = assembler.assemble().A.copy()
        np.testing.assert_array_equal(assembler.assemble().A, first)

    def test_ac_source_uses_its_offset_at_dc(self):
        components, wires = series_loop(ac_source("VAC", amplitude=5.0, offset=2.0),
                                        make_component("R1", "resistor", 1000.0))
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        assert result.branch_currents["R1"] == pytest.approx(2e-3)

    def test_logic_gates_do_not_disturb_analog_solution(self, voltage_divider):
        components, wires = voltage_divider
        components = components + [gate("U1", "logic_and")]
        wires = wires + connect(("U1:A", "R1:2"))
        result = run_dc_analysis(components, wires)
        assert result.success, result.error
        assert result.port_voltages["U1:A"] == pytest.approx(2.5)
        assert "U1:B" not in result.port_voltages
