import operator

import click
import tqdm
from eth_typing.evm import BlockParams
from web3.types import LogReceipt

from geyser_indexer.checksum_cache import get_checksum_address
from geyser_indexer.cli import cli
from geyser_indexer.cli.utils import get_web3_from_config
from geyser_indexer.config import settings
from geyser_indexer.database import EntityStore, db_session
from geyser_indexer.database.operations import ensure_database
from geyser_indexer.functions import (
    fetch_logs_retrying,
    get_block_timestamp,
    get_number_for_block_identifier,
)
from geyser_indexer.geyser import GeyserEventProcessor, Web3GeyserStateReader, decode_geyser_log
from geyser_indexer.geyser.events import GeyserEventTopic
from geyser_indexer.pricing import ChainlinkPriceOracle


def _sort_logs(logs: list[LogReceipt]) -> list[LogReceipt]:
    return sorted(logs, key=operator.itemgetter("blockNumber", "logIndex"))


@cli.command("update")
@click.option(
    "--chunk",
    "chunk_size",
    default=10_000,
    help="The maximum number of blocks to process before stamping pools as updated "
    "(default 10,000).",
)
@click.option(
    "--to-block",
    "to_block",
    metavar="INTEGER | TEXT",
    default="finalized",
    help=(
        "The last block included in the update range. Can be a number or an identifier: "
        "'earliest', 'finalized' (default), 'safe', 'latest', 'pending'"
    ),
)
@click.option(
    "--no-progress",
    "no_progress",
    is_flag=True,
    help="Disable the progress bar.",
)
def update(chunk_size: int, to_block: BlockParams, *, no_progress: bool) -> None:
    """
    Apply new Geyser events for all registered pools.
    """

    ensure_database(settings.database.path)
    store = EntityStore(db_session())
    pools = [pool for pool in store.get_pools() if pool.last_update_block is not None]
    if not pools:
        click.echo("No pools registered.")
        return

    w3 = get_web3_from_config(chain_id=settings.indexer.chain_id)
    oracle = ChainlinkPriceOracle(
        w3=w3,
        feeds=settings.pricing.chainlink_feeds,
        stablecoins=settings.pricing.stablecoins,
    )

    def get_reader(address: str, block_number: int) -> Web3GeyserStateReader:
        return Web3GeyserStateReader(
            w3=w3,
            address=get_checksum_address(address),
            block_identifier=block_number,
        )

    processor = GeyserEventProcessor(
        session_factory=db_session,
        reader_factory=get_reader,
        oracle=oracle,
        settings=settings.indexer,
    )

    last_block = (
        int(to_block)
        if to_block.isdigit()
        else get_number_for_block_identifier(identifier=to_block, w3=w3)
    )

    initial_start_block = working_start_block = min(
        pool.last_update_block + 1 for pool in pools if pool.last_update_block is not None
    )
    if initial_start_block > last_block:
        click.echo("No new blocks since the last update.")
        return

    block_pbar = tqdm.tqdm(
        desc="Processing new blocks",
        total=last_block - initial_start_block + 1,
        bar_format="{desc}: {percentage:3.1f}% |{bar}| {n_fmt}/{total_fmt}",
        leave=False,
        disable=no_progress,
    )

    topics = [[topic.value for topic in GeyserEventTopic]]

    while True:
        # Cap the working end block at the lowest of:
        # - the last block of the update range
        # - the end of the working chunk size
        # - the update block of any pool that is ahead of the working range
        working_end_block = min(
            [last_block]
            + [working_start_block + chunk_size - 1]
            + [
                pool.last_update_block
                for pool in pools
                if pool.last_update_block is not None
                if pool.last_update_block > working_start_block
            ],
        )
        assert working_end_block >= working_start_block

        pools_to_update = [
            pool
            for pool in pools
            if pool.last_update_block is not None
            and pool.last_update_block + 1 == working_start_block
        ]

        timestamps: dict[int, int] = {}
        for log in _sort_logs(
            fetch_logs_retrying(
                w3=w3,
                start_block=working_start_block,
                end_block=working_end_block,
                address=[get_checksum_address(pool.id) for pool in pools_to_update],
                topic_signature=topics,
            )
        ):
            block_number = log["blockNumber"]
            if block_number not in timestamps:
                timestamps[block_number] = get_block_timestamp(w3, block_number)

            oracle.block_identifier = block_number
            processor.process(decode_geyser_log(log, timestamps[block_number]))

        for pool in pools_to_update:
            pool.last_update_block = working_end_block
        db_session.commit()

        block_pbar.n = working_end_block - initial_start_block + 1
        block_pbar.refresh()

        if working_end_block == last_block:
            break
        working_start_block = working_end_block + 1

    block_pbar.close()
    click.echo(f"Updated {len(pools)} pools to block {last_block}")
