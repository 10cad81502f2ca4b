# Tests for Spin Qubit Simulator
#
# Test organization mirrors source structure:
#   - test_environment.py: T1/T2/T2*, thermal population, EnvironmentModel
#   - test_gates.py: gate library closed forms and matrices
#   - test_spin_engine.py: evolution, decoherence, gates, measurement
#   - test_gate_log.py: amplitude value type and gate log retention
#   - test_master_equation.py: Lindblad reference vs. the engine
#   - test_simulation.py: tick loop ordering and request queue
#   - test_circuit.py: circuit parsing and execution
#   - test_visualization.py: plotting smoke tests
#
# Running tests:
#   pytest tests/
#   pytest tests/test_spin_engine.py -v
#   pytest tests/ -k "decoherence"
