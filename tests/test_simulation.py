"""
Test Suite: Simulation Tick Loop
================================

One tick is: read ONE environment snapshot → evolve → apply_decoherence →
pending requests in FIFO order. These tests pin down that ordering, the
request queue, and the traces recorded by `run()`.
"""

import threading

import numpy as np
import pytest

from spin_qubit_simulator import (
    EnvironmentModel,
    GateParameterError,
    SpinEngine,
    SpinSimulation,
    UnknownGateError,
)

TIME_SCALE = 50e-9


@pytest.fixture
def sim():
    return SpinSimulation(engine=SpinEngine(rng=np.random.default_rng(11)))


@pytest.fixture
def zero_field_sim():
    """No precession: drive pulses give clean population transfer."""
    return SpinSimulation(environment=EnvironmentModel(b_field=0.0),
                          engine=SpinEngine(rng=np.random.default_rng(11)))


class TestTickOrdering:

    def test_requests_run_after_evolution(self, zero_field_sim):
        """
        A π pulse and a measurement requested for the same tick: the pulse
        (evolve) happens first, so the measurement must read |1⟩.
        """
        engine = zero_field_sim.engine
        dt = engine.pi_pulse_time / TIME_SCALE
        zero_field_sim.request_measurement()
        result = zero_field_sim.tick(dt, drive=True)
        assert result.measurements == [1]
        assert engine.p1 == 1.0

    def test_requests_applied_in_fifo_order(self, sim):
        sim.request_gate("X")
        sim.request_measurement()
        sim.request_gate("H")
        result = sim.tick(1 / 60)
        assert [e.gate_id for e in result.events] == ["X", "MEASURE", "H"]
        assert result.measurements == [1]

    def test_queue_drained_each_tick(self, sim):
        sim.request_gate("X")
        sim.tick(1 / 60)
        assert sim.pending_requests == 0
        assert sim.tick(1 / 60).events == []

    def test_engine_field_synced_from_environment(self, sim):
        sim.set_b_field(0.5)
        result = sim.tick(1 / 60)
        assert sim.engine.b_field == 0.5
        assert result.environment.b_field_tesla == 0.5

    def test_temperature_change_takes_effect_next_tick(self, sim):
        sim.set_temperature(4000.0)
        result = sim.tick(1 / 60)
        assert result.environment.temperature_mK == 4000.0

    def test_hot_environment_relaxes_excited_state(self):
        """At 4 K, T1 is a few ns: one long tick (0.5 μs physical) thermalizes."""
        sim = SpinSimulation(environment=EnvironmentModel(temperature_mK=4000.0),
                             engine=SpinEngine(rng=1))
        sim.engine.apply_gate("X")
        result = sim.tick(10.0)
        assert result.state.p1 == pytest.approx(result.environment.thermal_excitation_prob,
                                                abs=1e-6)

    def test_time_accumulates(self, sim):
        for _ in range(3):
            result = sim.tick(0.5)
        assert result.time == pytest.approx(1.5)
        assert sim.time == pytest.approx(1.5)


class TestRequests:

    def test_unknown_gate_rejected_at_request_time(self, sim):
        with pytest.raises(UnknownGateError):
            sim.request_gate("TOFFOLI")
        assert sim.pending_requests == 0

    def test_measurement_parameter_warned_at_request_time(self, sim):
        with pytest.warns(RuntimeWarning, match="takes no parameter"):
            sim.request_gate("MEASURE", 1.0)
        assert sim.tick(1 / 60).measurements == [0]

    def test_bad_angle_rejected_at_request_time(self, sim):
        with pytest.raises(GateParameterError):
            sim.request_gate("Rx", float("inf"))
        assert sim.pending_requests == 0

    def test_rotation_with_angle(self, sim):
        sim.request_gate("Ry", np.pi)
        result = sim.tick(1 / 60)
        assert result.events[0].parameter == pytest.approx(np.pi)
        assert result.state.p1 == pytest.approx(1.0, abs=1e-9)

    def test_concurrent_requests_all_applied(self, sim):
        """Requests from several input threads all land in the next tick."""
        def worker():
            for _ in range(25):
                sim.request_gate("X")

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        result = sim.tick(1 / 60)
        assert len(result.events) == 100
        assert result.state.p0 == pytest.approx(1.0)


class ObservedEngine(SpinEngine):
    """Engine that calls a hook between the evolve and decoherence steps."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.between_steps = None

    def apply_decoherence(self, dt, env):
        if self.between_steps is not None:
            self.between_steps()
        return super().apply_decoherence(dt, env)


class TestPublishedState:
    """
    `sim.state` is what readers poll. It must only ever hold a completed
    tick, even though the engine passes through intermediate states.
    """

    @pytest.fixture
    def hot_sim(self):
        return SpinSimulation(environment=EnvironmentModel(temperature_mK=4000.0),
                              engine=ObservedEngine(rng=np.random.default_rng(5)))

    def test_initial_state_published(self, hot_sim):
        assert hot_sim.state == hot_sim.engine.state
        assert hot_sim.last_result is None

    def test_reader_sees_pre_tick_state_during_tick(self, hot_sim):
        before = hot_sim.state
        seen = []
        hot_sim.engine.between_steps = lambda: seen.append(
            (hot_sim.state, hot_sim.engine.state)
        )
        hot_sim.request_gate("H")
        result = hot_sim.tick(1.0, drive=True)

        published_mid_tick, engine_mid_tick = seen[0]
        assert engine_mid_tick != before, "Driving moved the engine before decoherence"
        assert engine_mid_tick != result.state
        assert published_mid_tick == before
        assert hot_sim.state == result.state
        assert hot_sim.last_result is result

    def test_polling_thread_only_sees_completed_ticks(self, hot_sim):
        completed = [hot_sim.state]
        observed = []
        done = threading.Event()

        def reader():
            while True:
                state = hot_sim.state
                if not observed or observed[-1] is not state:
                    observed.append(state)
                if done.is_set():
                    break

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            for _ in range(200):
                hot_sim.request_gate("Rx", 0.3)
                completed.append(hot_sim.tick(0.1, drive=0.5).state)
        finally:
            done.set()
            thread.join()

        assert observed
        assert all(any(s is c for c in completed) for s in observed)

    def test_direct_engine_calls_published_by_next_tick(self, hot_sim):
        hot_sim.engine.apply_gate("X")
        assert hot_sim.state.p0 == 1.0
        hot_sim.tick(1e-6)
        assert hot_sim.state == hot_sim.engine.state


class TestRun:

    def test_trace_shapes(self, sim):
        trace = sim.run(n_ticks=30, dt=1 / 60, drive=False)
        assert trace.n_ticks == 30
        for series in (trace.p0, trace.p1, trace.theta, trace.phi):
            assert series.shape == (30,)
        assert np.all(np.diff(trace.times) > 0)
        np.testing.assert_allclose(trace.p0 + trace.p1, 1.0, atol=1e-9)

    def test_driven_run_oscillates(self, zero_field_sim):
        """A tenth of a π pulse per tick: p1 climbs to 1 after ten ticks."""
        dt = zero_field_sim.engine.pi_pulse_time / TIME_SCALE / 10
        trace = zero_field_sim.run(n_ticks=20, dt=dt, drive=True)
        assert trace.p1[9] == pytest.approx(1.0, abs=1e-6)
        assert trace.p1[19] == pytest.approx(0.0, abs=1e-6)
        assert np.all(np.diff(trace.p1[:10]) > 0)

    def test_run_collects_measurements(self, sim):
        sim.request_gate("X")
        sim.request_measurement()
        trace = sim.run(n_ticks=5, dt=1 / 60)
        assert trace.measurements == [1]

    def test_verbose_prints_summary(self, sim, capsys):
        sim.verbose = True
        sim.run(n_ticks=2, dt=1 / 60)
        out = capsys.readouterr().out
        assert "ENVIRONMENT SUMMARY" in out
        assert "Final state" in out

    def test_zero_ticks_rejected(self, sim):
        with pytest.raises(ValueError, match="n_ticks"):
            sim.run(n_ticks=0, dt=1 / 60)
