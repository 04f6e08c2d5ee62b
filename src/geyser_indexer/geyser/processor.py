from collections.abc import Callable
from decimal import localcontext

from eth_typing import ChecksumAddress
from sqlalchemy.orm import Session

from geyser_indexer.config import IndexerSettings
from geyser_indexer.database.models import PoolTable
from geyser_indexer.database.store import EntityStore
from geyser_indexer.exceptions import GeyserIndexerValueError
from geyser_indexer.functions import UINT256_DECIMAL_PRECISION
from geyser_indexer.geyser.events import GeyserEvent
from geyser_indexer.geyser.handlers import HANDLERS_BY_VERSION, HandlerContext
from geyser_indexer.geyser.state_reader import GeyserStateReader
from geyser_indexer.logging import logger
from geyser_indexer.pricing import PriceOracle
from geyser_indexer.types.aliases import BlockNumber

type ReaderFactory = Callable[[ChecksumAddress, BlockNumber], GeyserStateReader]


class GeyserEventProcessor:
    """
    Applies decoded Geyser events to the entity store, one event per database transaction.

    Events must be delivered exactly once, in (block, log index) order. The handler is picked by the
    version of the pool that emitted the event and runs with enough decimal precision to represent
    any uint256 amount exactly. If a handler raises, the session is rolled back so that no partial
    state from that event is persisted, and the exception propagates.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        reader_factory: ReaderFactory,
        oracle: PriceOracle,
        settings: IndexerSettings,
    ) -> None:
        self.session_factory = session_factory
        self.reader_factory = reader_factory
        self.oracle = oracle
        self.settings = settings

    def process(self, event: GeyserEvent) -> None:
        session = self.session_factory()
        store = EntityStore(session)

        try:
            pool = store.require(PoolTable, event.meta.address.lower())
            try:
                handlers = HANDLERS_BY_VERSION[pool.version]
            except KeyError:
                raise GeyserIndexerValueError(
                    f"Pool {pool.id} has unsupported version {pool.version}."
                ) from None

            handler = handlers[type(event)]
            with localcontext(prec=UINT256_DECIMAL_PRECISION):
                handler(
                    HandlerContext(
                        store=store,
                        pool=pool,
                        reader=self.reader_factory(event.meta.address, event.meta.block_number),
                        oracle=self.oracle,
                        settings=self.settings,
                    ),
                    event,
                )
            session.commit()
        except Exception as exc:
            session.rollback()
            logger.error(
                f"Failed to process {type(event).__name__} from {event.meta.address} "
                f"(user {getattr(event, 'user', None)}) at block {event.meta.block_number}, "
                f"tx {event.meta.transaction_hash}: {exc!r}"
            )
            raise
