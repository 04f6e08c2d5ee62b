"""
Stake lot bookkeeping for positions.

A position stores the ids of its stake lots in creation order. The contract consumes lots from the
end of the same list when a user unstakes, but the emitted event only carries the unstaked amount.
The local list is therefore brought back in line with the contract after every unstake by
comparing it against the contract's current lot count:

    - lots at an index at or beyond the current count were consumed and are deleted
    - the last surviving lot may have been partially consumed, so its shares are re-read
    - lots below the last surviving one cannot change and are not examined

The position's share total is then taken from the contract's user totals rather than summed from
the lots.
"""

from decimal import Decimal

from geyser_indexer.database.models import PoolTable, PositionTable, StakeTable
from geyser_indexer.database.store import EntityStore
from geyser_indexer.functions import integer_to_decimal
from geyser_indexer.geyser.state_reader import GeyserStateReader
from geyser_indexer.logging import logger


def append_stake_lot(
    store: EntityStore,
    position: PositionTable,
    stake_id: str,
    shares: Decimal,
    timestamp: int,
) -> StakeTable:
    """
    Create a stake lot at the end of the position's lot list and add its shares to the position.
    """

    stake = StakeTable(
        id=stake_id,
        position_id=position.id,
        user_id=position.user_id,
        pool_id=position.pool_id,
        shares=shares,
        timestamp=timestamp,
    )
    store.save(stake)

    position.shares += shares
    position.stakes = [*position.stakes, stake.id]
    position.updated = timestamp
    return stake


def reconcile_stake_lots(
    store: EntityStore,
    reader: GeyserStateReader,
    position: PositionTable,
    user: str,
    decimals: int,
) -> list[str]:
    """
    Drop consumed lots from the end of the position's lot list and re-sync the shares of the new
    last lot. Returns the surviving lot ids, which are also assigned to the position.
    """

    count = reader.stake_count(user)
    stakes = list(position.stakes)

    if count > len(stakes):
        logger.warning(
            f"Position {position.id} holds {len(stakes)} stake lots but the contract reports "
            f"{count} after an unstake"
        )

    for index in range(len(stakes) - 1, -1, -1):
        if index >= count:
            store.delete(StakeTable, stakes.pop())
            continue

        stake = store.require(StakeTable, stakes[index])
        lot = reader.user_stake(user, index)
        if lot.timestamp != stake.timestamp:
            logger.warning(
                f"Stake timestamps not equal for {stake.id}: {stake.timestamp} != {lot.timestamp}"
            )
        stake.shares = integer_to_decimal(lot.shares, decimals)
        store.save(stake)
        break

    position.stakes = stakes
    return stakes


def reconcile_position(
    store: EntityStore,
    reader: GeyserStateReader,
    pool: PoolTable,
    position: PositionTable,
    user: str,
    decimals: int,
    timestamp: int,
) -> PositionTable | None:
    """
    Bring a position in line with the contract after an unstake.

    The lot list is reconciled, then the share total is set from the contract's user totals. A
    position left with zero shares is deleted together with any lots it still references, and the
    pool's user count drops by one. Returns the position, or None if it was deleted.
    """

    reconcile_stake_lots(store, reader, position, user, decimals)

    totals = reader.user_totals(user)
    position.shares = integer_to_decimal(totals.shares, decimals)

    if position.shares == 0:
        for stake_id in position.stakes:
            store.delete(StakeTable, stake_id)
        store.delete(PositionTable, position.id)
        pool.users -= 1
        return None

    position.updated = timestamp
    store.save(position)
    return position
