"""Cascade deletion for the schemaless record store.

The store has no foreign keys and no cascading deletes, so removing a Team,
Game, Player or Formation means finding every dependent record across the
other collections and removing it first. Children always go before their
parents and the root record is always the last delete of its cascade.

Cleanup is best effort by default: listing and per-record failures are
logged and counted but never stop the root record from being deleted. Only
a failure deleting the root itself reaches the caller. With ``strict=True``
any cleanup failure raises :class:`CascadeError` instead and the root is
left in place so the cascade can be re-run.
"""
import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field

from sideline.models import (
    FORMATION, FORMATION_POSITION, GAME, GAME_NOTE, GAME_PLAN, GOAL,
    LINEUP_ASSIGNMENT, PLANNED_ROTATION, PLAY_TIME_RECORD, PLAYER,
    PLAYER_AVAILABILITY, SUBSTITUTION, TEAM, TEAM_INVITATION, TEAM_ROSTER,
)
from sideline.services.storage import MAX_PAGE_SIZE, split_filter

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


class CascadeError(Exception):
    """Cleanup failed while running in strict mode."""


@dataclass
class CascadeResult:
    collection: str
    record_id: str
    deleted: Counter = field(default_factory=Counter)
    cleared: int = 0
    failures: int = 0
    root_existed: bool = False

    @property
    def total_deleted(self):
        return sum(self.deleted.values())

    def merge(self, other):
        """Fold a nested cascade (a Team's Game) into this result."""
        self.deleted.update(other.deleted)
        self.cleared += other.cleared
        self.failures += other.failures

    def to_dict(self):
        return {
            'collection': self.collection,
            'id': self.record_id,
            'deleted': dict(self.deleted),
            'total_deleted': self.total_deleted,
            'cleared': self.cleared,
            'failures': self.failures,
            'root_existed': self.root_existed,
        }


async def list_all(collection, filter, limit=MAX_PAGE_SIZE):
    """Fetch every record matching ``filter``, following continuation tokens.

    A failing page request propagates; there is no retry.
    """
    split_filter(filter)
    limit = min(limit, MAX_PAGE_SIZE)
    records = []
    page_token = None
    while True:
        page = await collection.list(filter, page_token=page_token, limit=limit)
        records.extend(page.records)
        page_token = page.next_token
        if not page_token:
            return records


async def _settle_batch(collection, batch):
    """Delete one batch concurrently, waiting for every call whatever its outcome."""
    outcomes = await asyncio.gather(
        *(collection.delete(record['id']) for record in batch),
        return_exceptions=True,
    )
    deleted = 0
    failed = []
    for record, outcome in zip(batch, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning('Failed to delete %s %s: %s', collection.name, record['id'], outcome)
            failed.append(record['id'])
        else:
            deleted += 1
    return deleted, failed


def _batches(records, batch_size):
    if batch_size < 1:
        raise ValueError(f'batch_size must be at least 1, got {batch_size}')
    for start in range(0, len(records), batch_size):
        yield records[start:start + batch_size]


async def best_effort_delete_all(collection, records, batch_size=DEFAULT_BATCH_SIZE):
    """Delete ``records`` in sequential batches of ``batch_size`` concurrent calls.

    Individual failures are logged and skipped. Returns how many deletes
    succeeded.
    """
    deleted = 0
    for batch in _batches(records, batch_size):
        count, _ = await _settle_batch(collection, batch)
        deleted += count
    return deleted


async def strict_delete_all(collection, records, batch_size=DEFAULT_BATCH_SIZE):
    """Like :func:`best_effort_delete_all` but raises after the first batch with a failure."""
    deleted = 0
    for batch in _batches(records, batch_size):
        count, failed = await _settle_batch(collection, batch)
        deleted += count
        if failed:
            raise CascadeError(
                f'{len(failed)} {collection.name} delete(s) failed: {", ".join(failed)}'
            )
    return deleted


async def clear_reference(collection, record, field_name):
    """Null out ``field_name`` on ``record``, leaving the record itself in place.

    Returns False (and logs) when the update fails.
    """
    try:
        await collection.update(record['id'], {field_name: None})
    except Exception as e:
        logger.warning('Failed to clear %s.%s on %s: %s', collection.name, field_name, record['id'], e)
        return False
    return True


class CascadeDeleter:
    """Deletes root entities together with everything that depends on them.

    One method per root entity type. Each method lists dependents, deletes
    them deepest first and deletes the root last, then logs a one-line
    summary and returns a :class:`CascadeResult`.
    """

    def __init__(self, client, batch_size=DEFAULT_BATCH_SIZE, page_limit=MAX_PAGE_SIZE, strict=False):
        if batch_size < 1:
            raise ValueError(f'batch_size must be at least 1, got {batch_size}')
        self.client = client
        self.batch_size = batch_size
        self.page_limit = min(page_limit, MAX_PAGE_SIZE)
        self.strict = strict
        self._delete_all = strict_delete_all if strict else best_effort_delete_all

    # -- steps ---------------------------------------------------------------

    async def _list_groups(self, result, queries):
        """List several ``(collection, filter)`` queries concurrently.

        A failed listing counts as a failure and yields ``None`` for that
        query; in strict mode it raises once every listing has settled.
        """
        listings = await asyncio.gather(
            *(list_all(self.client[name], flt, self.page_limit) for name, flt in queries),
            return_exceptions=True,
        )
        records = []
        errors = []
        for (name, flt), listing in zip(queries, listings):
            if isinstance(listing, BaseException):
                logger.warning('Failed to list %s where %s: %s', name, flt, listing)
                result.failures += 1
                errors.append(listing)
                records.append(None)
            else:
                records.append(listing)
        if errors and self.strict:
            raise CascadeError(f'Listing dependents of {result.collection} {result.record_id} failed') from errors[0]
        return records

    async def _delete_groups(self, result, groups):
        """Delete several ``(collection, records)`` groups concurrently and wait for all."""
        groups = [(name, records) for name, records in groups if records]
        if not groups:
            return
        counts = await asyncio.gather(
            *(self._delete_all(self.client[name], records, self.batch_size) for name, records in groups),
            return_exceptions=True,
        )
        errors = []
        for (name, records), count in zip(groups, counts):
            if isinstance(count, BaseException):
                # Only strict_delete_all raises; the batch that failed is lost
                # from the count but the whole group has settled.
                errors.append(count)
                result.failures += 1
                continue
            result.deleted[name] += count
            result.failures += len(records) - count
        if errors:
            raise errors[0]

    async def _delete_root(self, result):
        result.root_existed = bool(await self.client[result.collection].delete(result.record_id))

    def _log_summary(self, result):
        counts = ', '.join(f'{n} {name}' for name, n in sorted(result.deleted.items()) if n)
        message = f'{result.collection} {result.record_id}: deleted {result.total_deleted} child records'
        if counts:
            message += f' ({counts})'
        if result.collection == PLAYER:
            message += f', cleared assist on {result.cleared} goals'
        if result.failures:
            message += f', {result.failures} failures'
        logger.info(message)

    # -- planners ------------------------------------------------------------

    async def delete_game_cascade(self, game_id):
        """Delete a Game and everything it owns.

        PlannedRotations go with the other game children; GamePlans only after
        that group has settled; the Game record last.
        """
        result = CascadeResult(GAME, game_id)
        game_filter = {'gameId': game_id}
        owned = [
            PLAY_TIME_RECORD, GOAL, GAME_NOTE, SUBSTITUTION,
            LINEUP_ASSIGNMENT, PLAYER_AVAILABILITY, GAME_PLAN,
        ]
        listings = await self._list_groups(result, [(name, game_filter) for name in owned])
        children = dict(zip(owned, (records or [] for records in listings)))

        plans = children.pop(GAME_PLAN)
        rotation_listings = await self._list_groups(
            result, [(PLANNED_ROTATION, {'gamePlanId': plan['id']}) for plan in plans]
        )
        rotations = []
        deletable_plans = []
        for plan, plan_rotations in zip(plans, rotation_listings):
            # A plan whose rotations could not be listed must outlive them.
            if plan_rotations is None:
                continue
            rotations.extend(plan_rotations)
            deletable_plans.append(plan)

        await self._delete_groups(result, [(PLANNED_ROTATION, rotations)] + list(children.items()))
        await self._delete_groups(result, [(GAME_PLAN, deletable_plans)])

        await self._delete_root(result)
        self._log_summary(result)
        return result

    async def delete_team_cascade(self, team_id):
        """Delete a Team, fully cascading each of its Games one at a time."""
        result = CascadeResult(TEAM, team_id)
        team_filter = {'teamId': team_id}
        games, rosters, invitations = (
            records or [] for records in await self._list_groups(
                result, [(GAME, team_filter), (TEAM_ROSTER, team_filter), (TEAM_INVITATION, team_filter)]
            )
        )

        for game in games:
            try:
                game_result = await self.delete_game_cascade(game['id'])
            except Exception as e:
                if self.strict:
                    raise
                logger.warning('Failed to delete %s %s of %s %s: %s', GAME, game['id'], TEAM, team_id, e)
                result.failures += 1
                continue
            result.merge(game_result)
            result.deleted[GAME] += 1

        await self._delete_groups(result, [(TEAM_ROSTER, rosters), (TEAM_INVITATION, invitations)])

        await self._delete_root(result)
        self._log_summary(result)
        return result

    async def delete_player_cascade(self, player_id):
        """Delete a Player and the records it owns.

        Goals the player scored are deleted. Goals the player only assisted
        survive with ``assistId`` cleared.
        """
        result = CascadeResult(PLAYER, player_id)
        player_filter = {'playerId': player_id}
        rosters, play_time, notes, availability, scored, assisted = (
            records or [] for records in await self._list_groups(result, [
                (TEAM_ROSTER, player_filter),
                (PLAY_TIME_RECORD, player_filter),
                (GAME_NOTE, player_filter),
                (PLAYER_AVAILABILITY, player_filter),
                (GOAL, {'scorerId': player_id}),
                (GOAL, {'assistId': player_id}),
            ])
        )

        scored_ids = {goal['id'] for goal in scored}
        goals = self.client[GOAL]
        for goal in assisted:
            if goal['id'] in scored_ids:
                continue
            if await clear_reference(goals, goal, 'assistId'):
                result.cleared += 1
            else:
                result.failures += 1
                if self.strict:
                    raise CascadeError(f'Failed to clear assistId on {GOAL} {goal["id"]}')

        await self._delete_groups(result, [
            (TEAM_ROSTER, rosters),
            (PLAY_TIME_RECORD, play_time),
            (GAME_NOTE, notes),
            (PLAYER_AVAILABILITY, availability),
            (GOAL, scored),
        ])

        await self._delete_root(result)
        self._log_summary(result)
        return result

    async def delete_formation_cascade(self, formation_id):
        """Delete a Formation and its positions.

        Teams pointing at the formation keep their ``formationId``; readers
        treat a missing formation as none assigned.
        """
        result = CascadeResult(FORMATION, formation_id)
        positions, = await self._list_groups(result, [(FORMATION_POSITION, {'formationId': formation_id})])

        await self._delete_groups(result, [(FORMATION_POSITION, positions or [])])

        await self._delete_root(result)
        self._log_summary(result)
        return result
