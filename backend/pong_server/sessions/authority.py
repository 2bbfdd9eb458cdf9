"""Ball-authority state machine.

Tracks the ready handshake of a session, spawns the ball once both players
are ready and hands simulation authority ("ball master") to whichever player
the ball is travelling towards. These functions mutate a ``Session`` in place
and expect the caller to hold the registry lock.

    NOT_READY --both ready--> READY --ball pushed--> IN_FLIGHT
                                                       |  ^
                                                       +--+ every ball push
"""
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidPlayer
from .pool import BallPhase, Session

BALL_INITIAL_VX = 5
BALL_INITIAL_VY = 5


@dataclass(frozen=True)
class ContextUpdate:
    left_pos: Optional[int] = None
    right_pos: Optional[int] = None
    ball_vx: Optional[int] = None
    ball_vy: Optional[int] = None
    ball_posx: Optional[int] = None
    ball_posy: Optional[int] = None

    @property
    def carries_ball(self) -> bool:
        return self.ball_vx is not None and self.ball_vy is not None


def both_ready(session: Session) -> bool:
    return session.player_left_ready and session.player_right_ready


def mark_ready(session: Session, player_id: int) -> bool:
    """Set the ready flag for ``player_id``'s side.

    Returns True if this call completed the handshake and spawned the ball.
    Flags are never cleared here, so a repeated Ready is harmless.
    """
    was_ready = both_ready(session)
    if player_id is not None and player_id == session.player_left_id:
        session.player_left_ready = True
    elif player_id is not None and player_id == session.player_right_id:
        session.player_right_ready = True
    else:
        raise InvalidPlayer(session.session_id, player_id)

    if was_ready or not both_ready(session):
        return False
    spawn_ball(session)
    return True


def spawn_ball(session: Session) -> None:
    # Position stays unset: clients pick the canonical start for their screen
    session.ball_vx = BALL_INITIAL_VX
    session.ball_vy = BALL_INITIAL_VY
    session.ball_posx = None
    session.ball_posy = None
    session.ball_master_id = session.player_right_id
    session.phase = BallPhase.READY


def apply_context(session: Session, update: ContextUpdate) -> bool:
    """Merge a client's state push. Returns True if ball state was taken."""
    if update.left_pos is not None:
        session.player_left_pos = update.left_pos
    if update.right_pos is not None:
        session.player_right_pos = update.right_pos

    if not both_ready(session) or not update.carries_ball:
        return False

    session.ball_vx = update.ball_vx
    session.ball_vy = update.ball_vy
    session.ball_posx = update.ball_posx
    session.ball_posy = update.ball_posy
    if update.ball_vx > 0:
        session.ball_master_id = session.player_right_id
    else:
        session.ball_master_id = session.player_left_id
    session.phase = BallPhase.IN_FLIGHT
    return True
