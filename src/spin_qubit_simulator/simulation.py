"""
Simulation Loop: Coupling the Environment Model to the Spin Engine
===================================================================

`SpinSimulation` is the single writer of a qubit. Once per tick it

1. reads ONE environment snapshot (temperature and field never change
   mid-tick, even if a setter runs concurrently),
2. syncs the engine's static field with the snapshot,
3. calls `engine.evolve(dt, drive)`,
4. calls `engine.apply_decoherence(dt, snapshot)`,
5. drains pending gate / measurement requests in FIFO order,
6. publishes the resulting state as `SpinSimulation.state`.

Requests and environment changes may come from other threads (input
handlers); they are queued or stored under the environment's lock and only
take effect inside a tick. Readers poll `sim.state`, which only ever holds
a completed tick; `sim.engine.state` changes step by step during a tick.

Example
-------
    >>> sim = SpinSimulation(engine=SpinEngine(rng=7))
    >>> sim.request_gate("H")
    >>> result = sim.tick(dt=1 / 60)
    >>> trace = sim.run(n_ticks=600, dt=1 / 60, drive=True)
"""

import queue
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np

from .environment import EnvironmentModel, EnvironmentSnapshot
from .gate_log import GateLogEntry
from .gates import GateId, resolve_angle, resolve_gate
from .spin_engine import DriveSignal, QubitState, SpinEngine


@dataclass(frozen=True)
class _Request:
    gate: GateId
    parameter: Optional[float] = None


@dataclass(frozen=True)
class TickResult:
    """
    Outcome of one tick.

    Attributes
    ----------
    state : QubitState
        Qubit state after the tick
    environment : EnvironmentSnapshot
        The snapshot used for the whole tick
    events : list of GateLogEntry
        Gates and measurements executed in this tick, in order
    time : float
        Accumulated display time at the end of the tick
    """
    state: QubitState
    environment: EnvironmentSnapshot
    events: List[GateLogEntry] = field(default_factory=list)
    time: float = 0.0

    @property
    def measurements(self) -> List[int]:
        return [e.result for e in self.events if e.is_measurement]


@dataclass
class SimulationTrace:
    """
    Time series recorded by `SpinSimulation.run()`.

    Attributes
    ----------
    times : np.ndarray
        Display time at the end of each tick
    p0, p1 : np.ndarray
        Populations after each tick
    theta, phi : np.ndarray
        Bloch angles after each tick
    measurements : list of int
        Measurement outcomes in execution order
    final_environment : EnvironmentSnapshot
        Snapshot used by the last tick
    """
    times: np.ndarray
    p0: np.ndarray
    p1: np.ndarray
    theta: np.ndarray
    phi: np.ndarray
    measurements: List[int]
    final_environment: EnvironmentSnapshot

    @property
    def n_ticks(self) -> int:
        return len(self.times)


class SpinSimulation:
    """
    Per-tick driver of one SpinEngine under one EnvironmentModel.

    Parameters
    ----------
    environment : EnvironmentModel, optional
        Shared environment (default: 20 mK, 1 T, ²⁸Si)
    engine : SpinEngine, optional
        Qubit to drive (default: new engine with an unseeded generator)
    verbose : bool
        Print environment summaries from `run()`
    """

    def __init__(self, environment: Optional[EnvironmentModel] = None,
                 engine: Optional[SpinEngine] = None, verbose: bool = False):
        self.environment = environment or EnvironmentModel()
        self.engine = engine or SpinEngine()
        self.verbose = verbose
        self._requests: "queue.SimpleQueue[_Request]" = queue.SimpleQueue()
        self._tick_lock = threading.Lock()
        self._time = 0.0
        self._state = self.engine.state
        self._last_result: Optional[TickResult] = None

    # -------------------------------------------------------------------------
    # Request surface (safe from any thread)
    # -------------------------------------------------------------------------

    def request_gate(self, gate: Union[GateId, str], parameter: Optional[float] = None) -> None:
        """
        Queue a gate for the next tick.

        The identifier and angle are validated now, so UnknownGateError or
        GateParameterError reach the caller instead of the tick loop.
        """
        gate_id = resolve_gate(gate)
        parameter = resolve_angle(gate_id, parameter)
        self._requests.put(_Request(gate_id, parameter))

    def request_measurement(self) -> None:
        self._requests.put(_Request(GateId.MEASURE))

    def set_temperature(self, temperature_mK: float) -> EnvironmentSnapshot:
        return self.environment.set_temperature(temperature_mK)

    def set_b_field(self, b_field: float) -> EnvironmentSnapshot:
        return self.environment.set_b_field(b_field)

    @property
    def time(self) -> float:
        return self._time

    @property
    def state(self) -> QubitState:
        """
        Qubit state as of the last completed tick.

        This is the polling surface for readers on other threads. It is
        replaced once at the end of each tick, so a reader sees either the
        pre-tick or the post-tick state and never one between the evolve,
        decoherence and request steps. Calls made directly on `engine`
        outside a tick show up here after the next tick.
        """
        return self._state

    @property
    def last_result(self) -> Optional[TickResult]:
        """Result of the last completed tick (None before the first)."""
        return self._last_result

    @property
    def pending_requests(self) -> int:
        return self._requests.qsize()

    # -------------------------------------------------------------------------
    # Tick loop
    # -------------------------------------------------------------------------

    def tick(self, dt: float, drive: DriveSignal = False) -> TickResult:
        """
        Advance one tick: evolve → apply_decoherence → pending requests.

        Parameters
        ----------
        dt : float
            Tick duration in display-time units
        drive : bool or float
            Drive signal for this tick
        """
        with self._tick_lock:
            env = self.environment.get_state()
            self.engine.set_b_field(env.b_field_tesla)

            self.engine.evolve(dt, drive)
            self.engine.apply_decoherence(dt, env)

            events = []
            while True:
                try:
                    request = self._requests.get_nowait()
                except queue.Empty:
                    break
                events.append(self.engine.apply_gate(request.gate, request.parameter))

            self._time += max(0.0, float(dt)) if np.isfinite(dt) else 0.0
            result = TickResult(state=self.engine.state, environment=env,
                                events=events, time=self._time)
            self._last_result = result
            self._state = result.state
            return result

    def run(self, n_ticks: int, dt: float, drive: DriveSignal = False) -> SimulationTrace:
        """
        Run `n_ticks` ticks with a constant drive signal and record a trace.

        Returns
        -------
        SimulationTrace
        """
        if n_ticks < 1:
            raise ValueError(f"n_ticks must be >= 1, got {n_ticks}")

        if self.verbose:
            print(self.environment.get_state().summary_table())
            print(f"Running {n_ticks} ticks of dt={dt:g} "
                  f"({dt * self.engine.parameters.time_scale:.3e} s physical each), "
                  f"drive={drive}")

        times = np.empty(n_ticks)
        p0 = np.empty(n_ticks)
        p1 = np.empty(n_ticks)
        theta = np.empty(n_ticks)
        phi = np.empty(n_ticks)
        measurements: List[int] = []
        result = None

        for i in range(n_ticks):
            result = self.tick(dt, drive)
            state = result.state
            angles = state.bloch_angles
            times[i] = result.time
            p0[i], p1[i] = state.p0, state.p1
            theta[i], phi[i] = angles.theta, angles.phi
            measurements.extend(result.measurements)

        if self.verbose:
            print(f"Final state: {self.engine.state_label}  "
                  f"(P(|1⟩) = {self.engine.p1 * 100:.2f}%)")

        return SimulationTrace(times=times, p0=p0, p1=p1, theta=theta, phi=phi,
                               measurements=measurements,
                               final_environment=result.environment)
