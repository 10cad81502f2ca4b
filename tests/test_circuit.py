"""
Test Suite: Circuit Parsing and Execution
=========================================
"""

import numpy as np
import pytest

from spin_qubit_simulator import (
    GateId,
    GateInstruction,
    GateParameterError,
    SpinEngine,
    UnknownGateError,
    circuit_unitary,
    format_gate,
    gate_matrix,
    parse_circuit,
    run_circuit,
)
from spin_qubit_simulator.circuit import parse_angle


@pytest.fixture
def engine():
    return SpinEngine(rng=np.random.default_rng(8), b_field=0.0)


class TestParsing:

    def test_basic_program(self):
        program = parse_circuit("H X Rx(0.5pi) MEASURE")
        assert [i.gate for i in program] == [GateId.H, GateId.X, GateId.RX, GateId.MEASURE]
        assert program[2].parameter == pytest.approx(np.pi / 2)
        assert program[0].parameter is None

    def test_case_insensitive_and_alias(self):
        program = parse_circuit("h rz(pi) m")
        assert [i.gate for i in program] == [GateId.H, GateId.RZ, GateId.MEASURE]

    @pytest.mark.parametrize("text,expected", [
        ("pi", np.pi),
        ("0.5pi", np.pi / 2),
        ("-0.25pi", -np.pi / 4),
        ("pi/2", np.pi / 2),
        ("-pi/4", -np.pi / 4),
        ("2*pi", 2 * np.pi),
        ("1.2", 1.2),
        ("π", np.pi),
    ])
    def test_angle_forms(self, text, expected):
        assert parse_angle(text) == pytest.approx(expected)

    def test_spaces_inside_parentheses(self):
        program = parse_circuit("Ry( pi / 2 )  X")
        assert len(program) == 2
        assert program[0].parameter == pytest.approx(np.pi / 2)

    def test_rotation_without_angle(self):
        assert parse_circuit("Ry")[0].parameter is None

    def test_empty_program(self):
        assert parse_circuit("   ") == []

    @pytest.mark.parametrize("text", ["H CNOT", "X Q(1)", "Rx(0.5pi"])
    def test_unknown_token(self, text):
        with pytest.raises(UnknownGateError):
            parse_circuit(text)

    @pytest.mark.parametrize("text", ["Rx(abc)", "X(1)", "Rz(pi/0)"])
    def test_bad_parameters(self, text):
        with pytest.raises(GateParameterError):
            parse_circuit(text)


class TestFormatting:

    def test_format_rotation(self):
        assert format_gate("Rx", np.pi / 2) == "Rx(0.50π)"
        assert format_gate(GateId.RZ, -np.pi) == "Rz(-1.00π)"

    def test_format_fixed_gate(self):
        assert format_gate("h") == "H"
        assert str(GateInstruction(GateId.MEASURE)) == "MEASURE"


class TestExecution:

    def test_x_then_measure(self, engine):
        result = run_circuit(engine, "X M")
        assert result.measurements == [1]
        assert result.final_state.p1 == 1.0
        assert [e.gate_id for e in result.log] == ["X", "MEASURE"]

    def test_reset_clears_state_and_log(self, engine):
        engine.apply_gate("X")
        engine.apply_gate("H")
        run_circuit(engine, "Z")
        assert engine.p0 == 1.0
        assert [e.gate_id for e in engine.get_gate_log()] == ["Z"]

    def test_without_reset_continues_from_current_state(self, engine):
        engine.apply_gate("X")
        result = run_circuit(engine, "X", reset=False)
        assert result.final_state.p0 == 1.0
        assert len(engine.get_gate_log()) == 2

    def test_parsed_instructions_accepted(self, engine):
        program = [GateInstruction(GateId.RY, np.pi), GateInstruction(GateId.MEASURE)]
        assert run_circuit(engine, program).measurements == [1]

    def test_unknown_gate_runs_nothing(self, engine):
        engine.apply_gate("X")
        with pytest.raises(UnknownGateError):
            run_circuit(engine, "H FOO")
        assert engine.p1 == 1.0, "Parsing fails before the engine is touched"

    def test_verbose_output(self, engine, capsys):
        run_circuit(engine, "H M", verbose=True)
        out = capsys.readouterr().out
        assert "H" in out and "|ψ⟩" in out


class TestUnitary:

    def test_hh_is_identity(self):
        np.testing.assert_allclose(circuit_unitary("H H"), np.eye(2), atol=1e-12)

    def test_hzh_is_x(self):
        np.testing.assert_allclose(circuit_unitary("H Z H"), gate_matrix("X"), atol=1e-12)

    def test_order_is_last_gate_leftmost(self):
        expected = gate_matrix("S") @ gate_matrix("H")
        np.testing.assert_allclose(circuit_unitary("H S"), expected, atol=1e-12)

    def test_unitary_matches_engine(self, engine):
        program = "H T Rx(0.3pi) S Ry(-0.7)"
        U = circuit_unitary(program)
        result = run_circuit(engine, program)
        np.testing.assert_allclose(result.final_state.as_array(), U @ [1, 0], atol=1e-12)

    def test_measure_has_no_unitary(self):
        with pytest.raises(UnknownGateError):
            circuit_unitary("H M")
