from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class BallPhase(str, Enum):
    NOT_READY = 'not_ready'
    READY = 'ready'
    IN_FLIGHT = 'in_flight'


@dataclass
class Session:
    """One game slot. ``None`` means unassigned, not reported or no ball."""
    session_id: Optional[int] = None
    player_left_id: Optional[int] = None
    player_right_id: Optional[int] = None
    player_left_pos: Optional[int] = None
    player_right_pos: Optional[int] = None
    player_left_ready: bool = False
    player_right_ready: bool = False
    ball_vx: Optional[int] = None
    ball_vy: Optional[int] = None
    ball_posx: Optional[int] = None
    ball_posy: Optional[int] = None
    ball_master_id: Optional[int] = None
    phase: BallPhase = BallPhase.NOT_READY

    @property
    def is_empty(self) -> bool:
        return self.session_id is None

    @property
    def has_free_side(self) -> bool:
        return self.player_left_id is None or self.player_right_id is None

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, f.default)

    def snapshot(self) -> 'SessionSnapshot':
        return SessionSnapshot(**asdict(self))


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of a session handed out of the registry lock."""
    session_id: Optional[int]
    player_left_id: Optional[int]
    player_right_id: Optional[int]
    player_left_pos: Optional[int]
    player_right_pos: Optional[int]
    player_left_ready: bool
    player_right_ready: bool
    ball_vx: Optional[int]
    ball_vy: Optional[int]
    ball_posx: Optional[int]
    ball_posy: Optional[int]
    ball_master_id: Optional[int]
    phase: BallPhase

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['phase'] = self.phase.value
        return data


class SlotPool:
    """Fixed-capacity storage of sessions. Not thread safe on its own."""

    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise ValueError(f"pool capacity must be at least 1, got {capacity}")
        self._slots: List[Session] = [Session() for _ in range(capacity)]

    def __len__(self) -> int:
        return len(self._slots)

    def acquire_free_or_partial_slot(self) -> Optional[Session]:
        for slot in self._slots:
            if slot.is_empty or slot.has_free_side:
                return slot
        return None

    def occupied(self) -> Iterator[Session]:
        return (slot for slot in self._slots if not slot.is_empty)
