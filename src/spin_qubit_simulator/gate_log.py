"""
Gate Log
========

Append-only record of the discrete events applied to a qubit: every gate
with the probabilities and Bloch angles it produced, and every measurement
with its outcome.

Retention is a caller decision. `GateLog(capacity=None)` keeps everything;
`GateLog(capacity=n)` is a ring buffer holding the newest n entries.
`total_recorded` keeps counting entries that were evicted.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterator, List, Optional


@dataclass(frozen=True)
class GateLogEntry:
    """
    One discrete event.

    Attributes
    ----------
    gate_id : str
        Gate identifier ("X", "Rx", ...) or "MEASURE"
    parameter : float or None
        Rotation angle actually applied (rotations only)
    p0, p1 : float
        Populations after the event
    theta, phi : float or None
        Bloch angles after a gate (None for measurements)
    result : int or None
        Measurement outcome (measurements only)
    sequence : int
        Position in the log's lifetime, starting at 0
    timestamp : float
        Wall-clock time of the event (s since epoch)
    """
    gate_id: str
    p0: float
    p1: float
    parameter: Optional[float] = None
    theta: Optional[float] = None
    phi: Optional[float] = None
    result: Optional[int] = None
    sequence: int = 0
    timestamp: float = field(default_factory=time.time)

    @property
    def is_measurement(self) -> bool:
        return self.result is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.is_measurement:
            return {"gate": self.gate_id, "result": self.result,
                    "p0": self.p0, "p1": self.p1, "sequence": self.sequence}
        return {"gate": self.gate_id, "parameter": self.parameter,
                "p0": self.p0, "p1": self.p1, "theta": self.theta, "phi": self.phi,
                "sequence": self.sequence}


class GateLog:
    """
    Ordered log of GateLogEntry records with optional bounded retention.

    Parameters
    ----------
    capacity : int, optional
        Maximum number of retained entries. None means unbounded.
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is not None and capacity < 1:
            raise ValueError(f"capacity must be None or >= 1, got {capacity}")
        self.capacity = capacity
        self._entries: Deque[GateLogEntry] = deque(maxlen=capacity)
        self._recorded = 0

    def record(self, gate_id: str, p0: float, p1: float, **details) -> GateLogEntry:
        """Create, append and return an entry stamped with the next sequence number."""
        entry = GateLogEntry(gate_id=gate_id, p0=p0, p1=p1,
                             sequence=self._recorded, **details)
        self._entries.append(entry)
        self._recorded += 1
        return entry

    def entries(self) -> List[GateLogEntry]:
        """Copy of the retained entries, oldest first."""
        return list(self._entries)

    def measurements(self) -> List[int]:
        return [e.result for e in self._entries if e.is_measurement]

    @property
    def latest(self) -> Optional[GateLogEntry]:
        return self._entries[-1] if self._entries else None

    @property
    def total_recorded(self) -> int:
        return self._recorded

    def clear(self) -> None:
        """Drop all entries. The sequence counter keeps running."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[GateLogEntry]:
        return iter(list(self._entries))
