import threading
from dataclasses import dataclass
from typing import Dict, Hashable, Optional


@dataclass(frozen=True)
class ConnectionBinding:
    player_id: int
    session_id: int


class ConnectionDirectory:
    """Connection handle -> (player, session), used for disconnect cleanup.

    Has its own lock so a GetId on one connection cannot race a disconnect
    on another.
    """

    def __init__(self):
        self._bindings: Dict[Hashable, ConnectionBinding] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._bindings)

    def bind(self, conn_id: Hashable, player_id: int, session_id: int) -> Optional[ConnectionBinding]:
        """Record a binding and return the one it replaced, if any."""
        with self._lock:
            previous = self._bindings.get(conn_id)
            self._bindings[conn_id] = ConnectionBinding(player_id, session_id)
            return previous

    def get(self, conn_id: Hashable) -> Optional[ConnectionBinding]:
        with self._lock:
            return self._bindings.get(conn_id)

    def pop(self, conn_id: Hashable) -> Optional[ConnectionBinding]:
        with self._lock:
            return self._bindings.pop(conn_id, None)
