from sideline.models import (
    FORMATION, FORMATION_POSITION, GAME, GAME_NOTE, GAME_PLAN, GOAL,
    LINEUP_ASSIGNMENT, PLANNED_ROTATION, PLAY_TIME_RECORD, PLAYER,
    PLAYER_AVAILABILITY, SUBSTITUTION, TEAM, TEAM_INVITATION, TEAM_ROSTER,
)

DEMO_PLAYERS = [('Alex', 'Morgan', 9), ('Sam', 'Kerr', 20), ('Mary', 'Earps', 1)]
DEMO_POSITIONS = [('Goalkeeper', 'GK'), ('Defender', 'DF'), ('Forward', 'FW')]
DEMO_OPPONENTS = ['Rovers', 'United']

async def seed_demo(client):
    """Create a small demo team with a formation, players and two played games.

    Returns the created root ids keyed by collection name.
    """
    formation = await client[FORMATION].put({'name': '1-1-1', 'playerCount': 3})
    positions = []
    for order, (name, abbreviation) in enumerate(DEMO_POSITIONS):
        positions.append(await client[FORMATION_POSITION].put({
            'formationId': formation['id'],
            'positionName': name,
            'abbreviation': abbreviation,
            'sortOrder': order,
        }))

    team = await client[TEAM].put({
        'name': 'Demo FC',
        'maxPlayersOnField': len(DEMO_POSITIONS),
        'halfLengthMinutes': 25,
        'formationId': formation['id'],
    })
    await client[TEAM_INVITATION].put({'teamId': team['id'], 'email': 'assistant@example.com', 'status': 'PENDING'})

    players = []
    for first_name, last_name, number in DEMO_PLAYERS:
        player = await client[PLAYER].put({'firstName': first_name, 'lastName': last_name})
        await client[TEAM_ROSTER].put({'teamId': team['id'], 'playerId': player['id'], 'playerNumber': number})
        players.append(player)

    games = []
    for opponent in DEMO_OPPONENTS:
        game = await client[GAME].put({'teamId': team['id'], 'opponent': opponent, 'isHome': True, 'status': 'completed'})
        games.append(game)
        game_id = game['id']

        for player, position in zip(players, positions):
            await client[LINEUP_ASSIGNMENT].put({'gameId': game_id, 'playerId': player['id'], 'positionId': position['id'], 'isStarter': True})
            await client[PLAY_TIME_RECORD].put({'gameId': game_id, 'playerId': player['id'], 'startGameSeconds': 0, 'endGameSeconds': 1500})
            await client[PLAYER_AVAILABILITY].put({'gameId': game_id, 'playerId': player['id'], 'status': 'available'})

        scorer, assist, keeper = players
        await client[GOAL].put({'gameId': game_id, 'scorerId': scorer['id'], 'assistId': assist['id'], 'scoredByUs': True, 'gameSeconds': 600, 'half': 1})
        await client[GAME_NOTE].put({'gameId': game_id, 'playerId': keeper['id'], 'noteType': 'gold-star', 'notes': 'Clean sheet'})
        await client[SUBSTITUTION].put({'gameId': game_id, 'playerOutId': assist['id'], 'playerInId': keeper['id'], 'positionId': positions[1]['id'], 'gameSeconds': 900, 'half': 2})

        plan = await client[GAME_PLAN].put({'gameId': game_id, 'rotationIntervalMinutes': 10, 'totalRotations': 2})
        for rotation_number in (1, 2):
            await client[PLANNED_ROTATION].put({'gamePlanId': plan['id'], 'rotationNumber': rotation_number, 'gameMinute': rotation_number * 10, 'half': 1})

    return {
        TEAM: team['id'],
        FORMATION: formation['id'],
        PLAYER: [p['id'] for p in players],
        GAME: [g['id'] for g in games],
    }
