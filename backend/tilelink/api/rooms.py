from flask import Blueprint, current_app, jsonify, request

rooms = Blueprint('rooms', __name__)


@rooms.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    """
    Returns the cross-room leaderboard, best first.
    """
    default_limit = int(current_app.config.get('LEADERBOARD_LIMIT', 50))
    limit = request.args.get('limit', default_limit, type=int)
    if limit is None or limit < 1:
        return jsonify({'error': 'limit must be a positive integer'}), 400
    manager = current_app.extensions['tilelink']
    return jsonify({'leaderboard': manager.leaderboard.top(min(limit, default_limit))})


@rooms.route('/rooms/<string:room_code>', methods=['GET'])
def get_room_state(room_code):
    """
    Returns the public snapshot of a live room.
    """
    snapshot = current_app.extensions['tilelink'].room_state(room_code)
    if snapshot is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(snapshot), 200
