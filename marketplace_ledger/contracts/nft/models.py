from marketplace_ledger.utils.models.annotated_types import (
    BigIntegerType,
    BooleanType,
    IntegerType,
    InsertedAtType,
    NullableBigIntegerType,
    NullableIntegerType,
    NullableStringType,
    StringPrimaryKeyType,
    StringType,
    Uint256PrimaryKeyType,
    Uint256Type,
)
from marketplace_ledger.utils.models.general_models import Base


class NFTCollectionInfo(Base):
    __tablename__ = "nft_collections"

    address: StringPrimaryKeyType
    nft_type: IntegerType
    name: StringType
    symbol: StringType
    # Per-user collections are Ownable; shared mint tokens defer to their registry
    owner: NullableStringType
    factory: NullableStringType
    registry_address: NullableStringType
    token_counter: BigIntegerType
    max_total_supply: NullableBigIntegerType
    max_batch: NullableBigIntegerType
    default_royalty_receiver: NullableStringType
    default_royalty_bps: NullableIntegerType
    inserted_at: InsertedAtType


class NFTTokenInfo(Base):
    __tablename__ = "nft_tokens"

    contract_address: StringPrimaryKeyType
    token_id: Uint256PrimaryKeyType
    uri: StringType
    total_supply: Uint256Type
    # ERC-721 single token approval
    approved: NullableStringType
    royalty_receiver: NullableStringType
    royalty_bps: NullableIntegerType


class NFTBalance(Base):
    """Holdings per (contract, token, holder); rows never hold a zero amount."""

    __tablename__ = "nft_balances"

    contract_address: StringPrimaryKeyType
    token_id: Uint256PrimaryKeyType
    holder: StringPrimaryKeyType
    amount: Uint256Type


class NFTOperatorApproval(Base):
    __tablename__ = "nft_operator_approvals"

    contract_address: StringPrimaryKeyType
    owner: StringPrimaryKeyType
    operator: StringPrimaryKeyType
    approved: BooleanType


class CollectionAdmin(Base):
    __tablename__ = "nft_collection_admins"

    contract_address: StringPrimaryKeyType
    account: StringPrimaryKeyType
    is_admin: BooleanType
