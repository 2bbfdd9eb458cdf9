import logging
import random
import threading
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from . import authority
from .authority import ContextUpdate
from .errors import SessionPoolExhausted, UnknownSession
from .identity import Side, derive_player_id, new_session_id, side_of
from .pool import Session, SessionSnapshot, SlotPool

logger = logging.getLogger(__name__)

T = TypeVar('T')


class SessionRegistry:
    """Maps session ids to pool slots and serializes every mutation.

    All public methods run as a single critical section under one lock and
    only hand out ``SessionSnapshot`` copies, never the live slots.
    """

    def __init__(self, capacity: int = 1, rng: Optional[random.Random] = None):
        self._pool = SlotPool(capacity)
        self._by_id: Dict[int, Session] = {}
        self._lock = threading.Lock()
        self._rng = rng

    @property
    def capacity(self) -> int:
        return len(self._pool)

    def get_or_create_session_and_assign_player(self) -> Tuple[int, int]:
        with self._lock:
            slot = self._pool.acquire_free_or_partial_slot()
            if slot is None:
                logger.warning(f"[pool-full] capacity={len(self._pool)}")
                raise SessionPoolExhausted(f"all {len(self._pool)} session slots are full")

            if slot.is_empty:
                slot.reset()
                slot.session_id = new_session_id(self._by_id, self._rng)
                self._by_id[slot.session_id] = slot
                logger.info(f"[session-new] session={slot.session_id}")

            if slot.player_left_id is None:
                side = Side.LEFT
                slot.player_left_id = player_id = derive_player_id(slot.session_id, side)
            else:
                side = Side.RIGHT
                slot.player_right_id = player_id = derive_player_id(slot.session_id, side)
            logger.info(f"[player-join] session={slot.session_id} player={player_id} side={side.name.lower()}")
            return slot.session_id, player_id

    def release_player(self, player_id: int, session_id: int) -> bool:
        """Free the side held by ``player_id``.

        Ready flags and ball state are left for the remaining player. Once
        both sides are free the slot is torn down and the id forgotten.
        """
        with self._lock:
            slot = self._by_id.get(session_id)
            if slot is None:
                logger.warning(f"[release-invalid] unknown session={session_id} player={player_id}")
                return False

            if player_id is not None and player_id == slot.player_left_id:
                slot.player_left_id = None
                slot.player_left_pos = None
            elif player_id is not None and player_id == slot.player_right_id:
                slot.player_right_id = None
                slot.player_right_pos = None
            else:
                logger.warning(f"[release-invalid] session={session_id} player={player_id} not seated")
                return False

            side = side_of(player_id)
            logger.info(f"[player-leave] session={session_id} player={player_id} side={side.name.lower() if side else '?'}")
            if slot.player_left_id is None and slot.player_right_id is None:
                del self._by_id[session_id]
                slot.reset()
                logger.info(f"[session-end] session={session_id}")
            return True

    def get_session(self, session_id: int) -> Optional[SessionSnapshot]:
        with self._lock:
            slot = self._by_id.get(session_id)
            return slot.snapshot() if slot is not None else None

    def snapshot(self) -> List[SessionSnapshot]:
        with self._lock:
            return [slot.snapshot() for slot in self._pool.occupied()]

    def mark_ready(self, session_id: int, player_id: int) -> bool:
        """Record a player's Ready. True if this spawned the ball."""
        def _ready(slot: Session) -> bool:
            spawned = authority.mark_ready(slot, player_id)
            if spawned:
                logger.info(f"[ball-spawn] session={session_id} master={slot.ball_master_id} "
                            f"v=({slot.ball_vx},{slot.ball_vy})")
            return spawned
        return self._mutate(session_id, _ready)

    def apply_context(self, session_id: int, update: ContextUpdate) -> bool:
        """Merge a SetCtx push. True if the ball state was taken over."""
        def _apply(slot: Session) -> bool:
            previous_master = slot.ball_master_id
            taken = authority.apply_context(slot, update)
            if taken and slot.ball_master_id != previous_master:
                logger.debug(f"[ball-master] session={session_id} {previous_master} -> {slot.ball_master_id}")
            return taken
        return self._mutate(session_id, _apply)

    def _mutate(self, session_id: int, fn: Callable[[Session], T]) -> T:
        with self._lock:
            slot = self._by_id.get(session_id)
            if slot is None:
                raise UnknownSession(session_id)
            return fn(slot)
