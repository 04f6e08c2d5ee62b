import os
import tomllib
from decimal import Decimal
from pathlib import Path
from typing import Annotated

import tomlkit
from pydantic import BaseModel, HttpUrl, PlainSerializer, WebsocketUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from geyser_indexer.constants import GYSR_TOKEN, PRICING_MIN_TVL
from geyser_indexer.logging import logger

CONFIG_DIR = Path(
    os.environ.get(
        "GEYSER_INDEXER_CONFIG_DIR",
        Path.home() / ".config" / "geyser_indexer",
    )
)
CONFIG_FILE = CONFIG_DIR / "config.toml"
DB_PATH = CONFIG_DIR / "geyser_indexer.db"


class DatabaseSettings(BaseModel):
    # Serialize the path as a string representation of the absolute path
    path: Annotated[
        Path,
        PlainSerializer(lambda path: str(path.absolute()), return_type=str),
    ]


class IndexerSettings(BaseModel):
    chain_id: int = 1
    gysr_token: str = GYSR_TOKEN
    # Decimals are serialized as strings, TOML has no arbitrary-precision number type
    pricing_min_tvl: Annotated[
        Decimal,
        PlainSerializer(str, return_type=str),
    ] = PRICING_MIN_TVL


class PricingSettings(BaseModel):
    # token address -> Chainlink USD aggregator address
    chainlink_feeds: dict[str, str] = {}
    # tokens priced at exactly 1 USD
    stablecoins: list[str] = []

    @field_validator("chainlink_feeds", mode="after")
    def normalize_feed_keys(
        cls,  # noqa: N805
        feeds: dict[str, str],
    ) -> dict[str, str]:
        """
        Token keys are matched against lowercase entity ids.
        """

        return {token.lower(): feed for token, feed in feeds.items()}

    @field_validator("stablecoins", mode="after")
    def normalize_stablecoins(
        cls,  # noqa: N805
        stablecoins: list[str],
    ) -> list[str]:
        return [token.lower() for token in stablecoins]


class Settings(BaseSettings):
    model_config = SettingsConfigDict()

    database: DatabaseSettings
    rpc: dict[
        int,
        HttpUrl | WebsocketUrl | Path,
    ]
    indexer: IndexerSettings = IndexerSettings()
    pricing: PricingSettings = PricingSettings()

    @field_validator("rpc", mode="after")
    def validate_paths(
        cls,  # noqa: N805
        rpc_dict: dict[int, HttpUrl | WebsocketUrl | Path],
    ) -> dict[int, HttpUrl | WebsocketUrl | Path]:
        """
        Validate the endpoints.

        This will convert all file paths to an absolute reference, leaving HTTP and WS URLs as-is.
        """

        return {
            chain_id: endpoint.expanduser().absolute() if isinstance(endpoint, Path) else endpoint
            for chain_id, endpoint in rpc_dict.items()
        }


def load_config_from_file(config_path: Path) -> Settings:
    return Settings.model_validate(
        tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings) -> None:
    CONFIG_FILE.write_text(
        tomlkit.dumps(
            config.model_dump(mode="json"),
        ),
    )


if not CONFIG_DIR.exists():
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created a configuration directory at {CONFIG_DIR}.")

if CONFIG_FILE.exists():
    settings = load_config_from_file(CONFIG_FILE)
else:
    settings = Settings(
        database=DatabaseSettings(
            path=DB_PATH,
        ),
        rpc={},
    )

    save_config_to_file(settings)
    logger.info(f"Created a configuration file at {CONFIG_FILE}.")
