import yaml
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from typing import Optional


class MarketplaceConfig(BaseModel):
    # Platform fee retained on every sale, in basis points (250 = 2.5%)
    listing_fee_bps: int = Field(default=250, ge=0, le=10000)


class CollectionConfig(BaseModel):
    max_collection: int = Field(default=5, gt=0)
    max_total_supply: int = Field(default=100, gt=0)
    max_batch: int = Field(default=100, gt=0)


class LedgerConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARKETPLACE_LEDGER_", env_nested_delimiter="__"
    )

    ledger_name: str = "marketplace_ledger"
    db_connection_uri: str = "sqlite+pysqlite:///:memory:"
    # Block timestamp of a fresh ledger; the wall clock is used when unset
    genesis_timestamp: Optional[int] = None
    log_level: str = "INFO"
    marketplace: MarketplaceConfig = Field(default_factory=MarketplaceConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)

    # change order of priority of settings sources such that environment variables take precedence over config file settings
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings, file_secret_settings

    @classmethod
    def from_yaml_file(cls, path: str):
        with open(path, "r") as file:
            config = yaml.safe_load(file) or {}

        return cls(**config)
