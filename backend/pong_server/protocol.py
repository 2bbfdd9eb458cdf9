"""Pong wire messages.

Every message is a JSON object carried in the ``pong_data`` Socket.IO event,
discriminated by its ``type`` field. The type names follow the client's
``DataType`` enum, which is why the id response is ``SetId`` and the context
response shares ``SetCtx`` with the client's state push.

Absent values travel as sentinels and are mapped to ``None`` on decode:

- ids: ``0xFFFFFFFF``
- paddle positions: ``-1``
- ball velocity and position: ``0x7FFFFFFF``
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from pong_server.sessions.authority import ContextUpdate

U32_MAX = 0xFFFFFFFF
I32_MIN = -0x80000000
I32_MAX = 0x7FFFFFFF

ID_UNSET = U32_MAX
POS_UNSET = -1
BALL_UNSET = I32_MAX


class ProtocolError(ValueError):
    """Inbound payload could not be decoded."""


# ---- client -> server ----

@dataclass(frozen=True)
class Hello:
    msg: str


@dataclass(frozen=True)
class GetId:
    pass


@dataclass(frozen=True)
class GetCtx:
    session_id: int


@dataclass(frozen=True)
class SetCtx:
    session_id: int
    left_pos: Optional[int] = None
    right_pos: Optional[int] = None
    ball_vx: Optional[int] = None
    ball_vy: Optional[int] = None
    ball_posx: Optional[int] = None
    ball_posy: Optional[int] = None

    def to_update(self) -> ContextUpdate:
        return ContextUpdate(
            left_pos=self.left_pos,
            right_pos=self.right_pos,
            ball_vx=self.ball_vx,
            ball_vy=self.ball_vy,
            ball_posx=self.ball_posx,
            ball_posy=self.ball_posy,
        )


@dataclass(frozen=True)
class Ready:
    session_id: int
    player_id: int


@dataclass(frozen=True)
class Unknown:
    """Well-formed message of a kind the server does not accept."""
    type: str


Inbound = Union[Hello, GetId, GetCtx, SetCtx, Ready, Unknown]


# ---- server -> client ----

@dataclass(frozen=True)
class IdResponse:
    player_id: Optional[int]
    session_id: Optional[int]
    error: Optional[str] = None


@dataclass(frozen=True)
class CtxResponse:
    left_id: Optional[int]
    right_id: Optional[int]
    left_pos: Optional[int]
    right_pos: Optional[int]
    ball_vx: Optional[int]
    ball_vy: Optional[int]
    ball_posx: Optional[int]
    ball_posy: Optional[int]
    ball_master_id: Optional[int]


Outbound = Union[Hello, IdResponse, CtxResponse]


def _field(data: Dict[str, Any], name: str, lo: int, hi: int, unset: int, required: bool = False) -> Optional[int]:
    if name not in data or data[name] is None:
        if required:
            raise ProtocolError(f"missing field '{name}'")
        return None
    value = data[name]
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProtocolError(f"field '{name}' must be an integer, got {type(value).__name__}")
    if not lo <= value <= hi:
        raise ProtocolError(f"field '{name}' out of range: {value}")
    return None if value == unset else value


def _u32(data, name, required=False):
    return _field(data, name, 0, U32_MAX, ID_UNSET, required)


def _pos(data, name):
    return _field(data, name, I32_MIN, I32_MAX, POS_UNSET)


def _ball(data, name):
    return _field(data, name, I32_MIN, I32_MAX, BALL_UNSET)


def decode(payload: Any) -> Inbound:
    """Turn a raw ``pong_data`` payload into a message object.

    Accepts a dict or its JSON text/bytes. Raises ProtocolError for anything
    malformed; an unrecognized ``type`` yields ``Unknown`` instead.
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"payload is not utf-8: {exc}") from exc
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"payload is not JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ProtocolError(f"payload must be an object, got {type(payload).__name__}")

    kind = payload.get('type')
    if not isinstance(kind, str):
        raise ProtocolError("missing message type")

    if kind == 'Hello':
        msg = payload.get('msg', '')
        if not isinstance(msg, str):
            raise ProtocolError("field 'msg' must be a string")
        return Hello(msg)
    if kind == 'GetId':
        return GetId()
    if kind == 'GetCtx':
        return GetCtx(_u32(payload, 'session', required=True))
    if kind == 'SetCtx':
        return SetCtx(
            session_id=_u32(payload, 'session', required=True),
            left_pos=_pos(payload, 'left_pos'),
            right_pos=_pos(payload, 'right_pos'),
            ball_vx=_ball(payload, 'ball_vx'),
            ball_vy=_ball(payload, 'ball_vy'),
            ball_posx=_ball(payload, 'ball_posx'),
            ball_posy=_ball(payload, 'ball_posy'),
        )
    if kind == 'Ready':
        return Ready(_u32(payload, 'session', required=True), _u32(payload, 'id', required=True))
    return Unknown(kind)


def _or(value: Optional[int], unset: int) -> int:
    return unset if value is None else value


def encode(message: Outbound) -> Dict[str, Any]:
    if isinstance(message, Hello):
        return {'type': 'Hello', 'msg': message.msg}
    if isinstance(message, IdResponse):
        data = {
            'type': 'SetId',
            'id': _or(message.player_id, ID_UNSET),
            'session': _or(message.session_id, ID_UNSET),
        }
        if message.error:
            data['error'] = message.error
        return data
    if isinstance(message, CtxResponse):
        return {
            'type': 'SetCtx',
            'left_id': _or(message.left_id, ID_UNSET),
            'right_id': _or(message.right_id, ID_UNSET),
            'left_pos': _or(message.left_pos, POS_UNSET),
            'right_pos': _or(message.right_pos, POS_UNSET),
            'ball_vx': _or(message.ball_vx, BALL_UNSET),
            'ball_vy': _or(message.ball_vy, BALL_UNSET),
            'ball_posx': _or(message.ball_posx, BALL_UNSET),
            'ball_posy': _or(message.ball_posy, BALL_UNSET),
            'ball_master_id': _or(message.ball_master_id, ID_UNSET),
        }
    raise TypeError(f"cannot encode {type(message).__name__}")
