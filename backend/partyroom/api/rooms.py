from flask import Blueprint, current_app, jsonify

rooms = Blueprint('rooms', __name__)


@rooms.route('/room/<string:room_id>/players', methods=['GET'])
def get_player_list(room_id):
    """
    Returns the player list of a room in the playerListUpdate shape.
    An unknown room reads exactly like a freshly created, empty one.
    """
    current_app.logger.info(f"[api] player list room={room_id}")
    return jsonify(current_app.extensions['partyroom'].player_list(room_id)), 200


@rooms.route('/health', methods=['GET'])
def health():
    coordinator = current_app.extensions['partyroom']
    return jsonify({'status': 'ok', 'rooms': len(coordinator.store)}), 200
