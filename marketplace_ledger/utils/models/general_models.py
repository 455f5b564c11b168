from sqlalchemy.orm import DeclarativeBase
from marketplace_ledger.utils.models.annotated_types import (
    BigIntegerPrimaryKeyType,
    BigIntegerType,
    InsertedAtType,
    JsonType,
    NullableStringType,
    StringPrimaryKeyType,
    StringType,
    Uint256Type,
    UpdatedAtType,
)


class Base(DeclarativeBase):
    pass


class LedgerState(Base):
    __tablename__ = "ledger_state"

    ledger_name: StringPrimaryKeyType
    next_version: BigIntegerType
    block_timestamp: BigIntegerType
    updated_at: UpdatedAtType


class DeployedContract(Base):
    __tablename__ = "deployed_contracts"

    address: StringPrimaryKeyType
    contract_type: StringType
    deployer: StringType
    # Set for minimal-proxy clones, which share the behaviour of their template
    template_address: NullableStringType
    deployed_version: BigIntegerType
    inserted_at: InsertedAtType


class EmittedEvent(Base):
    __tablename__ = "emitted_events"

    transaction_version: BigIntegerPrimaryKeyType
    event_index: BigIntegerPrimaryKeyType
    contract_address: StringType
    event_type: StringType
    data: JsonType
    block_timestamp: BigIntegerType
    inserted_at: InsertedAtType


class AssetBalance(Base):
    """Fungible holdings, keyed by token; the zero address token is the native currency."""

    __tablename__ = "asset_balances"

    token_address: StringPrimaryKeyType
    holder: StringPrimaryKeyType
    amount: Uint256Type
