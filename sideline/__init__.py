import asyncio

import click
from flask import Flask
from config import Config
from sideline.extensions import db

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Cascade loggers live under the app logger ("sideline.*")
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize Flask extensions
    db.init_app(app)

    # Register Blueprints
    from sideline.routes import main, admin, auth
    app.register_blueprint(main.bp)
    app.register_blueprint(admin.bp)
    app.register_blueprint(auth.bp)

    # Create tables if they don't exist
    with app.app_context():
        db.create_all()

    # CLI commands
    from sideline.models import FORMATION, GAME, PLAYER, TEAM
    from sideline.seed import seed_demo
    from sideline.services import get_cascade_deleter, sql_storage_client

    @app.cli.command('init-db')
    def init_db_command():
        """Create all database tables."""
        db.create_all()
        print('Initialized the database.')

    @app.cli.command('seed-demo')
    def seed_demo_command():
        """Create a demo team with players, a formation and two games."""
        ids = asyncio.run(seed_demo(sql_storage_client()))
        print(f"Created team {ids[TEAM]} with formation {ids[FORMATION]}.")
        print(f"Players: {', '.join(ids[PLAYER])}")
        print(f"Games: {', '.join(ids[GAME])}")

    def register_delete_command(collection, method_name):
        @app.cli.command(f'delete-{collection.lower()}',
                         help=f'Delete a {collection} and everything that depends on it.')
        @click.argument('record_id')
        def delete_command(record_id):
            deleter = get_cascade_deleter()
            result = asyncio.run(getattr(deleter, method_name)(record_id))
            if not result.root_existed:
                print(f"{collection} {record_id} did not exist.")
            else:
                print(f"Deleted {collection} {record_id} and {result.total_deleted} dependent records.")
            if result.cleared:
                print(f"Cleared {result.cleared} assist references.")
            if result.failures:
                print(f"{result.failures} cleanup operations failed, see log.")

    register_delete_command(GAME, 'delete_game_cascade')
    register_delete_command(TEAM, 'delete_team_cascade')
    register_delete_command(PLAYER, 'delete_player_cascade')
    register_delete_command(FORMATION, 'delete_formation_cascade')

    return app
