import asyncio

from flask import Blueprint, abort, jsonify, request
from sqlalchemy import func
from sideline.extensions import db
from sideline.models import COLLECTIONS, FORMATION, TEAM, Record
from sideline.services import MAX_PAGE_SIZE, sql_storage_client

bp = Blueprint('main', __name__)

@bp.route('/', methods=['GET'])
def index():
    # Record count per collection, zero for empty ones
    counts = dict(
        db.session.query(Record.collection, func.count(Record.id))
        .group_by(Record.collection)
        .all()
    )
    return jsonify({name: counts.get(name, 0) for name in COLLECTIONS})

@bp.route('/records/<collection>', methods=['GET'])
def list_records(collection):
    """One page of a collection filtered on a single field, e.g. ?gameId=abc."""
    if collection not in COLLECTIONS:
        abort(404)

    args = request.args.to_dict()
    page_token = args.pop('page_token', None) or None
    try:
        limit = int(args.pop('limit', MAX_PAGE_SIZE))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400
    if len(args) != 1:
        return jsonify({'error': 'Filter on exactly one field, e.g. ?teamId=<id>'}), 400

    client = sql_storage_client()
    page = asyncio.run(client[collection].list(args, page_token=page_token, limit=limit))
    return jsonify({'records': page.records, 'next_token': page.next_token})

@bp.route('/teams/<team_id>/formation', methods=['GET'])
def team_formation(team_id):
    client = sql_storage_client()
    team = asyncio.run(client[TEAM].get(team_id))
    if team is None:
        abort(404)

    # Deleting a formation leaves teams pointing at it; that reads as "no formation".
    formation = None
    if team.get('formationId'):
        formation = asyncio.run(client[FORMATION].get(team['formationId']))
    return jsonify({'teamId': team_id, 'formation': formation})
