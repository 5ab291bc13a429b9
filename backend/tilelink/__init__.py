import random

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, scheduler=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from tilelink.routes import main
    flask_app.register_blueprint(main)

    from tilelink.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    # Session state lives in memory for the lifetime of this app
    from tilelink.broadcast import SocketIOBroadcaster
    from tilelink.rooms import RoomManager, SessionStore
    from tilelink.services.board.scoring import Leaderboard
    from tilelink.services.scheduler import SocketIOScheduler

    manager = RoomManager(
        SessionStore(),
        SocketIOBroadcaster(socketio),
        scheduler or SocketIOScheduler(socketio),
        Leaderboard(),
        config=flask_app.config,
        logger=flask_app.logger,
    )
    flask_app.extensions['tilelink'] = manager

    from tilelink.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    if not flask_app.config.get('TESTING'):
        manager.start_idle_sweeper()

    @click.command('print-board')
    @click.option('--seed', type=int, default=None, help='Seed for a reproducible layout.')
    def print_board_command(seed):
        """Generates a board and prints it with a hint pair."""
        from tilelink.models import Board
        from tilelink.services.board.pathfinding import find_any_pair

        cfg = flask_app.config
        board = Board.generate(cfg['BOARD_ROWS'], cfg['BOARD_COLS'], cfg['TILE_TYPE_COUNT'], rng=random.Random(seed))
        for row in board.cells:
            click.echo(' '.join('  .' if v is None else f'{v:3d}' for v in row))
        pair = find_any_pair(board, cfg['MAX_TURNS'])
        if pair:
            a, b = pair
            click.echo(f'hint: ({a.row},{a.col}) <-> ({b.row},{b.col})')
        else:
            click.echo('no moves available')

    flask_app.cli.add_command(print_board_command)

    return flask_app
