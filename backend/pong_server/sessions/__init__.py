"""Session core: slot pool, identities, registry and ball authority.

Pure in-process state with no transport concerns; the dispatcher and the
Socket.IO handlers call into it.
"""
from .authority import BALL_INITIAL_VX, BALL_INITIAL_VY, ContextUpdate
from .directory import ConnectionBinding, ConnectionDirectory
from .errors import InvalidPlayer, SessionError, SessionPoolExhausted, UnknownSession
from .identity import U32_UNASSIGNED, Side, derive_player_id, new_session_id
from .pool import BallPhase, Session, SessionSnapshot, SlotPool
from .registry import SessionRegistry
