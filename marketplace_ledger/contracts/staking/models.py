from marketplace_ledger.utils.models.annotated_types import (
    BigIntegerPrimaryKeyType,
    BigIntegerType,
    InsertedAtType,
    StringPrimaryKeyType,
    StringType,
    Uint256Type,
    UpdatedAtType,
)
from marketplace_ledger.utils.models.general_models import Base


class PoolFactoryState(Base):
    __tablename__ = "pool_factories"

    address: StringPrimaryKeyType
    registry_address: StringType
    pool_template: StringType
    pool_counter: BigIntegerType


class PoolRecord(Base):
    __tablename__ = "pool_records"

    factory_address: StringPrimaryKeyType
    pool_id: BigIntegerPrimaryKeyType
    pool_address: StringType
    stake_token: StringType
    creator: StringType
    transaction_version: BigIntegerType
    inserted_at: InsertedAtType


class StakingPoolState(Base):
    __tablename__ = "staking_pools"

    address: StringPrimaryKeyType
    factory: StringType
    stake_token: StringType
    reward_rate_bps: BigIntegerType
    start_time: BigIntegerType
    end_time: BigIntegerType
    lock_duration: BigIntegerType
    total_staked: Uint256Type


class StakeInfo(Base):
    __tablename__ = "stake_infos"

    pool_address: StringPrimaryKeyType
    account: StringPrimaryKeyType
    amount: Uint256Type
    # Rewards accrued up to `last_accrued_at` and not yet claimed
    pending_reward: Uint256Type
    staked_at: BigIntegerType
    last_accrued_at: BigIntegerType
    updated_at: UpdatedAtType
