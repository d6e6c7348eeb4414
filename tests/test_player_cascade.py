import logging

import pytest

from sideline.models import (
    GAME_NOTE, GOAL, PLAY_TIME_RECORD, PLAYER, PLAYER_AVAILABILITY,
    SUBSTITUTION, TEAM_ROSTER,
)
from sideline.services import CascadeDeleter, CascadeError


def add_player(store, player_id='player-1'):
    store.add(PLAYER, player_id, firstName='Alex', lastName='Morgan')
    store.add(TEAM_ROSTER, 'roster-1', teamId='team-1', playerId=player_id)
    store.add(PLAY_TIME_RECORD, 'ptr-1', gameId='game-1', playerId=player_id)
    store.add(GAME_NOTE, 'note-1', gameId='game-1', playerId=player_id)
    store.add(PLAYER_AVAILABILITY, 'avail-1', gameId='game-1', playerId=player_id)
    store.add(GOAL, 'goal-scored', gameId='game-1', scorerId=player_id, assistId='player-2')
    store.add(GOAL, 'goal-assisted', gameId='game-1', scorerId='player-2', assistId=player_id)


@pytest.mark.asyncio
async def test_player_without_children_deletes_only_the_player(store):
    store.add(PLAYER, 'player-1')

    await CascadeDeleter(store).delete_player_cascade('player-1')

    assert store.delete_calls() == ['player-1']
    assert store.update_calls() == []


@pytest.mark.asyncio
async def test_scored_goal_is_deleted_and_not_updated(store):
    add_player(store)

    await CascadeDeleter(store).delete_player_cascade('player-1')

    assert 'goal-scored' in store.delete_calls()
    assert 'goal-scored' not in [goal_id for goal_id, _ in store.update_calls()]


@pytest.mark.asyncio
async def test_assisted_goal_is_kept_with_assist_cleared(store):
    add_player(store)

    result = await CascadeDeleter(store).delete_player_cascade('player-1')

    assert store.update_calls() == [('goal-assisted', {'assistId': None})]
    assert 'goal-assisted' not in store.delete_calls()
    assert store[GOAL].records['goal-assisted'] == {
        'id': 'goal-assisted', 'gameId': 'game-1', 'scorerId': 'player-2', 'assistId': None,
    }
    assert result.cleared == 1


@pytest.mark.asyncio
async def test_owned_records_are_deleted_and_player_last(store):
    add_player(store)
    store.add(PLAY_TIME_RECORD, 'ptr-other', gameId='game-1', playerId='player-2')

    result = await CascadeDeleter(store).delete_player_cascade('player-1')

    assert store.ids_in(PLAYER) == set()
    assert store.ids_in(TEAM_ROSTER) == set()
    assert store.ids_in(PLAY_TIME_RECORD) == {'ptr-other'}
    assert store.ids_in(GAME_NOTE) == set()
    assert store.ids_in(PLAYER_AVAILABILITY) == set()
    assert store.ids_in(GOAL) == {'goal-assisted'}
    assert store.delete_calls()[-1] == 'player-1'
    assert result.total_deleted == 5


@pytest.mark.asyncio
async def test_assists_are_cleared_before_owned_records_are_deleted(store):
    add_player(store)

    await CascadeDeleter(store).delete_player_cascade('player-1')

    first_delete = next(i for i, call in enumerate(store.calls) if call[0] == 'delete')
    update = next(i for i, call in enumerate(store.calls) if call[0] == 'update')
    assert update < first_delete


@pytest.mark.asyncio
async def test_own_assist_on_own_goal_is_only_deleted(store):
    store.add(PLAYER, 'player-1')
    store.add(GOAL, 'goal-solo', gameId='game-1', scorerId='player-1', assistId='player-1')

    await CascadeDeleter(store).delete_player_cascade('player-1')

    assert store.update_calls() == []
    assert store.delete_calls() == ['goal-solo', 'player-1']


@pytest.mark.asyncio
async def test_substitutions_are_left_to_the_game(store):
    add_player(store)
    store.add(SUBSTITUTION, 'sub-1', gameId='game-1', playerOutId='player-1', playerInId='player-2')

    await CascadeDeleter(store).delete_player_cascade('player-1')

    assert store.ids_in(SUBSTITUTION) == {'sub-1'}


@pytest.mark.asyncio
async def test_failed_assist_clear_is_logged_and_counted(store, caplog):
    add_player(store)
    store[GOAL].fail_update.add('goal-assisted')

    with caplog.at_level(logging.WARNING, logger='sideline.services.cascade'):
        result = await CascadeDeleter(store).delete_player_cascade('player-1')

    assert result.cleared == 0
    assert result.failures == 1
    assert store.ids_in(PLAYER) == set()
    assert 'goal-assisted' in caplog.text


@pytest.mark.asyncio
async def test_strict_mode_stops_on_failed_assist_clear(store):
    add_player(store)
    store[GOAL].fail_update.add('goal-assisted')

    with pytest.raises(CascadeError):
        await CascadeDeleter(store, strict=True).delete_player_cascade('player-1')

    assert store.delete_calls() == []


@pytest.mark.asyncio
async def test_summary_reports_cleared_assists(store, caplog):
    add_player(store)

    with caplog.at_level(logging.INFO, logger='sideline.services.cascade'):
        await CascadeDeleter(store).delete_player_cascade('player-1')

    assert 'Player player-1: deleted 5 child records' in caplog.text
    assert 'cleared assist on 1 goals' in caplog.text
