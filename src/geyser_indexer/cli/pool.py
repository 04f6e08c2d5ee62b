import click
import eth_abi.exceptions
from web3 import Web3
from web3.exceptions import Web3Exception

from geyser_indexer.checksum_cache import get_checksum_address
from geyser_indexer.cli import cli
from geyser_indexer.cli.utils import get_web3_from_config
from geyser_indexer.config import settings
from geyser_indexer.database import EntityStore, db_session
from geyser_indexer.database.models import PoolTable, TokenTable
from geyser_indexer.database.operations import ensure_database
from geyser_indexer.database.store import new_pool, new_token
from geyser_indexer.functions import (
    encode_function_calldata,
    get_block_timestamp,
    raw_call,
    to_entity_id,
)
from geyser_indexer.logging import logger


def _read_token(w3: Web3, store: EntityStore, token_address: str) -> TokenTable:
    """
    Get the token record, reading its metadata from the chain if it is not yet known.
    """

    if (token := store.load(TokenTable, to_entity_id(token_address))) is not None:
        return token

    address = get_checksum_address(token_address)
    (decimals,) = raw_call(
        w3=w3,
        address=address,
        calldata=encode_function_calldata(function_prototype="decimals()", function_arguments=None),
        return_types=["uint8"],
    )

    metadata: dict[str, str | None] = {}
    for field in ("name", "symbol"):
        try:
            (metadata[field],) = raw_call(
                w3=w3,
                address=address,
                calldata=encode_function_calldata(
                    function_prototype=f"{field}()", function_arguments=None
                ),
                return_types=["string"],
            )
        except (Web3Exception, eth_abi.exceptions.DecodingError):
            # Some tokens return bytes32 or nothing at all
            logger.debug(f"Could not read {field}() from token {address}")
            metadata[field] = None

    token = new_token(
        to_entity_id(token_address),
        decimals=decimals,
        name=metadata["name"],
        symbol=metadata["symbol"],
    )
    store.save(token)
    return token


@cli.group()
def pool() -> None:
    """
    Geyser pool commands
    """


@pool.command("add")
@click.argument("pool_address")
@click.option(
    "--version",
    "pool_version",
    type=click.IntRange(0, 1),
    required=True,
    help="The contract version: 0 for Geyser, 1 for GeyserV1.",
)
@click.option(
    "--block",
    "deployment_block",
    type=int,
    default=None,
    help="The block the pool was deployed at. Indexing starts here (default: the latest block).",
)
def pool_add(pool_address: str, pool_version: int, deployment_block: int | None) -> None:
    """
    Register a deployed Geyser pool for indexing.
    """

    ensure_database(settings.database.path)
    w3 = get_web3_from_config(chain_id=settings.indexer.chain_id)
    store = EntityStore(db_session())

    pool_id = to_entity_id(pool_address)
    if store.load(PoolTable, pool_id) is not None:
        click.echo(f"Pool {pool_id} is already registered.")
        return

    address = get_checksum_address(pool_address)
    if deployment_block is None:
        deployment_block = w3.eth.block_number

    (staking_token_address,) = raw_call(
        w3=w3,
        address=address,
        calldata=encode_function_calldata(
            function_prototype="stakingToken()", function_arguments=None
        ),
        return_types=["address"],
        block_identifier=deployment_block,
    )
    (reward_token_address,) = raw_call(
        w3=w3,
        address=address,
        calldata=encode_function_calldata(
            function_prototype="rewardToken()", function_arguments=None
        ),
        return_types=["address"],
        block_identifier=deployment_block,
    )

    staking_token = _read_token(w3, store, staking_token_address)
    reward_token = _read_token(w3, store, reward_token_address)
    store.get_platform()
    store.save(
        new_pool(
            pool_id,
            version=pool_version,
            staking_token_id=staking_token.id,
            reward_token_ids=[reward_token.id],
            created=get_block_timestamp(w3, deployment_block),
            last_update_block=deployment_block - 1,
        )
    )
    db_session.commit()

    click.echo(
        f"Added Geyser{'V1' if pool_version == 1 else ''} pool {pool_id} "
        f"(staking {staking_token.symbol or staking_token.id}, "
        f"reward {reward_token.symbol or reward_token.id}) from block {deployment_block}"
    )


@pool.command("list")
def pool_list() -> None:
    """
    List registered Geyser pools.
    """

    ensure_database(settings.database.path)
    store = EntityStore(db_session())

    pools = store.get_pools()
    if not pools:
        click.echo("No pools registered.")
        return

    for pool_in_db in pools:
        click.echo(
            f"{pool_in_db.id}  v{pool_in_db.version}  "
            f"users={pool_in_db.users}  tvl=${pool_in_db.tvl:,.2f}  "
            f"last block={pool_in_db.last_update_block}"
        )
