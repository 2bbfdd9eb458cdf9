import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional

from pong_server.protocol import (
    CtxResponse, GetCtx, GetId, Hello, IdResponse, Inbound, Outbound, Ready, SetCtx, Unknown, encode,
)
from pong_server.sessions import (
    ConnectionDirectory, InvalidPlayer, SessionPoolExhausted, SessionRegistry, UnknownSession,
)

Send = Callable[[Dict[str, Any]], None]

POOL_EXHAUSTED = 'no session available'


class Dispatcher:
    """Routes decoded messages from one connection into the session core.

    ``send`` is supplied by the connection layer per call and receives the
    encoded reply. Only GetId and GetCtx ever reply; every other kind is a
    one-way push.
    """

    def __init__(self, registry: SessionRegistry, directory: ConnectionDirectory,
                 logger: Optional[logging.Logger] = None):
        self.registry = registry
        self.directory = directory
        self.logger = logger or logging.getLogger(__name__)
        # Directory and registry are locked separately; seat changes span both
        self._seat_lock = threading.Lock()
        self._handlers = {
            Hello: self._on_hello,
            GetId: self._on_get_id,
            GetCtx: self._on_get_ctx,
            SetCtx: self._on_set_ctx,
            Ready: self._on_ready,
        }

    def dispatch(self, message: Inbound, conn_id: Hashable, send: Send) -> None:
        handler = self._handlers.get(type(message), self._on_unknown)
        handler(message, conn_id, send)

    def disconnect(self, conn_id: Hashable) -> None:
        """Release whatever player the closing connection held."""
        with self._seat_lock:
            binding = self.directory.pop(conn_id)
            if binding is None:
                self.logger.debug(f"[disconnect] conn={conn_id} had no player")
                return
            self.logger.info(f"[disconnect] conn={conn_id} player={binding.player_id} session={binding.session_id}")
            self.registry.release_player(binding.player_id, binding.session_id)

    def _reply(self, send: Send, conn_id: Hashable, message: Outbound) -> None:
        try:
            send(encode(message))
        except Exception as exc:
            # Delivery is best effort; the connection layer notices dead sockets
            self.logger.warning(f"[send-failed] conn={conn_id} kind={type(message).__name__} error={exc}")

    def _on_hello(self, message: Hello, conn_id, send) -> None:
        self.logger.info(f"[hello] conn={conn_id} msg={message.msg!r}")

    def _on_get_id(self, message: GetId, conn_id, send) -> None:
        try:
            session_id, player_id = self._take_seat(conn_id)
        except SessionPoolExhausted:
            self.logger.warning(f"[get-id] conn={conn_id} pool exhausted")
            self._reply(send, conn_id, IdResponse(None, None, error=POOL_EXHAUSTED))
            return
        self._reply(send, conn_id, IdResponse(player_id, session_id))

    def _take_seat(self, conn_id):
        with self._seat_lock:
            previous = self.directory.pop(conn_id)
            if previous is not None:
                self.logger.info(f"[get-id] conn={conn_id} already holds player={previous.player_id}, releasing")
                self.registry.release_player(previous.player_id, previous.session_id)
            session_id, player_id = self.registry.get_or_create_session_and_assign_player()
            self.directory.bind(conn_id, player_id, session_id)
            return session_id, player_id

    def _on_get_ctx(self, message: GetCtx, conn_id, send) -> None:
        session = self.registry.get_session(message.session_id)
        if session is None:
            # No reply: the client is left waiting, as the protocol has no error kind
            self.logger.warning(f"[get-ctx] conn={conn_id} unknown session={message.session_id}")
            return
        self._reply(send, conn_id, CtxResponse(
            left_id=session.player_left_id,
            right_id=session.player_right_id,
            left_pos=session.player_left_pos,
            right_pos=session.player_right_pos,
            ball_vx=session.ball_vx,
            ball_vy=session.ball_vy,
            ball_posx=session.ball_posx,
            ball_posy=session.ball_posy,
            ball_master_id=session.ball_master_id,
        ))

    def _on_set_ctx(self, message: SetCtx, conn_id, send) -> None:
        try:
            self.registry.apply_context(message.session_id, message.to_update())
        except UnknownSession:
            self.logger.warning(f"[set-ctx] conn={conn_id} unknown session={message.session_id}")

    def _on_ready(self, message: Ready, conn_id, send) -> None:
        try:
            self.registry.mark_ready(message.session_id, message.player_id)
        except UnknownSession:
            self.logger.warning(f"[ready] conn={conn_id} unknown session={message.session_id}")
        except InvalidPlayer:
            self.logger.warning(f"[ready] conn={conn_id} invalid player id={message.player_id} "
                                f"session={message.session_id}")

    def _on_unknown(self, message: Inbound, conn_id, send) -> None:
        kind = message.type if isinstance(message, Unknown) else type(message).__name__
        self.logger.warning(f"[unknown] conn={conn_id} kind={kind!r} ignored")
