from flask import current_app, request
from flask_socketio import disconnect, emit

from pong_server import socketio
from pong_server.protocol import Hello, ProtocolError, decode, encode

NAMESPACE = '/ws'
EVENT = 'pong_data'


def _dispatcher():
    return current_app.extensions['pong']


def _send(payload):
    emit(EVENT, payload)


def handle_connect(auth=None):
    # Greeting goes out before any client message is handled
    current_app.logger.info(f"[connect] conn={request.sid}")
    emit(EVENT, encode(Hello(current_app.config['HELLO_MESSAGE'])))


def handle_disconnect(reason=None):
    current_app.logger.info(f"[connection-closed] conn={request.sid} reason={reason}")
    _dispatcher().disconnect(request.sid)


def handle_pong_data(data):
    try:
        message = decode(data)
    except ProtocolError as exc:
        current_app.logger.warning(f"[decode-failed] conn={request.sid} error={exc}; dropping connection")
        disconnect()
        return
    _dispatcher().dispatch(message, request.sid, _send)


def register_socketio_handlers() -> None:
    """Bind the Pong handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event(EVENT, handle_pong_data, namespace=NAMESPACE)
