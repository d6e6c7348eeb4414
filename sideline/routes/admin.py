import asyncio

from flask import Blueprint, current_app, jsonify
from sideline.models import FORMATION, GAME, PLAYER, TEAM
from sideline.services import get_cascade_deleter
from sideline.utils import admin_required

bp = Blueprint('admin', __name__)

def _run_cascade(collection, method_name, record_id):
    deleter = get_cascade_deleter()
    try:
        result = asyncio.run(getattr(deleter, method_name)(record_id))
    except Exception as e:
        # Only the root delete (or strict-mode cleanup) gets here
        current_app.logger.exception('Deleting %s %s failed', collection, record_id)
        return jsonify({'error': f'Error deleting {collection}: {e}'}), 500
    return jsonify(result.to_dict())

@bp.route('/games/<game_id>/delete', methods=['POST'])
@admin_required
def delete_game(game_id):
    return _run_cascade(GAME, 'delete_game_cascade', game_id)

@bp.route('/teams/<team_id>/delete', methods=['POST'])
@admin_required
def delete_team(team_id):
    return _run_cascade(TEAM, 'delete_team_cascade', team_id)

@bp.route('/players/<player_id>/delete', methods=['POST'])
@admin_required
def delete_player(player_id):
    return _run_cascade(PLAYER, 'delete_player_cascade', player_id)

@bp.route('/formations/<formation_id>/delete', methods=['POST'])
@admin_required
def delete_formation(formation_id):
    return _run_cascade(FORMATION, 'delete_formation_cascade', formation_id)
