from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Per-app game state: queue, sessions, throttling, bot and event log
    from growgrid.services.games.runtime import GameServices
    services = GameServices.from_config(flask_app.config, logger=flask_app.logger)
    flask_app.extensions['growgrid'] = services

    # Import and register blueprints here
    from growgrid.routes import main
    flask_app.register_blueprint(main)

    from growgrid.api.bot import bot
    flask_app.register_blueprint(bot, url_prefix='/api/bot')

    # Register Socket.IO event handlers on the freshly initialized server
    from growgrid.socketio_events import register_socketio_handlers
    register_socketio_handlers(socketio, services, namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'))

    @click.command('bot-demo')
    @click.option('--max-size', default=7, show_default=True, help='Stop once the grid reaches this size.')
    @click.option('--depth', default=2, show_default=True, help='Search depth cap for both bots.')
    @click.option('--seed', default=None, type=int, help='Seed for reproducible games.')
    def bot_demo_command(max_size, depth, seed):
        """Plays the bot against itself on a growing grid."""
        from growgrid.services.games.selfplay import play_bot_game
        result = play_bot_game(max_size=max_size, seed=seed, max_depth=depth,
                               growth=services.growth, start_size=services.grid_size,
                               on_expand=lambda size, streak: click.echo(f'Board full, expanded to {size}x{size} (streak {streak})'))
        click.echo(result.render())
        if result.winner:
            click.echo(f'{result.winner} wins in {result.moves} moves')
        else:
            click.echo(f'No winner after {result.moves} moves')

    flask_app.cli.add_command(bot_demo_command)

    return flask_app
