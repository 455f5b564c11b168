from marketplace_ledger.utils.models.annotated_types import (
    IntegerType,
    StringPrimaryKeyType,
    StringType,
    Uint256Type,
)
from marketplace_ledger.utils.models.general_models import Base


class FungibleTokenInfo(Base):
    __tablename__ = "fungible_tokens"

    address: StringPrimaryKeyType
    name: StringType
    symbol: StringType
    decimals: IntegerType
    total_supply: Uint256Type
    owner: StringType


class FungibleAllowance(Base):
    __tablename__ = "fungible_allowances"

    token_address: StringPrimaryKeyType
    owner: StringPrimaryKeyType
    spender: StringPrimaryKeyType
    amount: Uint256Type
