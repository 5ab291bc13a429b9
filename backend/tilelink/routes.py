from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the tilelink game server!'})

@main.route('/health')
def health():
    manager = current_app.extensions['tilelink']
    return jsonify({'ok': True, 'rooms': len(manager.store.rooms)})
