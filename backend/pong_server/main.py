from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Hello, World!'})


@main.route('/status')
def status():
    """Read-only view of the slot pool for operators."""
    dispatcher = current_app.extensions['pong']
    sessions = dispatcher.registry.snapshot()
    return jsonify({
        'capacity': dispatcher.registry.capacity,
        'occupied': len(sessions),
        'connections': len(dispatcher.directory),
        'sessions': [s.to_dict() for s in sessions],
    })
