import random
from enum import IntEnum
from typing import Container, Optional

U32_MASK = 0xFFFFFFFF
# Wire value meaning "no id"; never handed out as a real session id
U32_UNASSIGNED = U32_MASK


class Side(IntEnum):
    LEFT = 1
    RIGHT = 2


def new_session_id(existing_ids: Container[int], rng: Optional[random.Random] = None) -> int:
    """Draw a random 32-bit session id not present in ``existing_ids``."""
    draw = (rng or random).getrandbits
    while True:
        candidate = draw(32)
        if candidate != U32_UNASSIGNED and candidate not in existing_ids:
            return candidate


def derive_player_id(session_id: int, side: Side) -> int:
    # Low two bits are 01 or 10, so the result can never be U32_UNASSIGNED
    return ((session_id << 2) | int(side)) & U32_MASK


def side_of(player_id: int) -> Optional[Side]:
    try:
        return Side(player_id & 0b11)
    except ValueError:
        return None
