from marketplace_ledger.utils.models.annotated_types import (
    BigIntegerPrimaryKeyType,
    BigIntegerType,
    InsertedAtType,
    IntegerType,
    NullableStringType,
    StringPrimaryKeyType,
    StringType,
    Uint256Type,
    UpdatedAtType,
)
from marketplace_ledger.utils.models.general_models import Base


class MarketplaceState(Base):
    __tablename__ = "marketplaces"

    address: StringPrimaryKeyType
    registry_address: StringType
    order_manager: NullableStringType
    listing_fee_bps: IntegerType
    market_item_counter: BigIntegerType


class MarketItem(Base):
    __tablename__ = "market_items"

    marketplace_address: StringPrimaryKeyType
    market_item_id: BigIntegerPrimaryKeyType
    nft_contract_address: StringType
    token_id: Uint256Type
    amount: Uint256Type
    price: Uint256Type
    # The zero address is native currency
    payment_token: StringType
    seller: StringType
    buyer: NullableStringType
    start_time: BigIntegerType
    end_time: BigIntegerType
    status: IntegerType
    whitelist_root: NullableStringType
    transaction_version: BigIntegerType
    inserted_at: InsertedAtType
    updated_at: UpdatedAtType


class MarketplaceBuyer(Base):
    __tablename__ = "marketplace_buyers"

    marketplace_address: StringPrimaryKeyType
    account: StringPrimaryKeyType


class OrderManagerState(Base):
    __tablename__ = "order_managers"

    address: StringPrimaryKeyType
    marketplace: StringType
    order_counter: BigIntegerType
    wallet_order_counter: BigIntegerType
    market_item_order_counter: BigIntegerType


class Order(Base):
    __tablename__ = "orders"

    order_manager_address: StringPrimaryKeyType
    order_id: BigIntegerPrimaryKeyType
    kind: IntegerType
    owner: StringType
    payment_token: StringType
    bid_price: Uint256Type
    status: IntegerType
    expired_time: BigIntegerType
    transaction_version: BigIntegerType
    inserted_at: InsertedAtType
    updated_at: UpdatedAtType


class WalletOrder(Base):
    """An offer made directly to the wallet holding an unlisted NFT."""

    __tablename__ = "wallet_orders"

    order_manager_address: StringPrimaryKeyType
    order_id: BigIntegerPrimaryKeyType
    wallet_order_id: BigIntegerType
    to: StringType
    nft_address: StringType
    token_id: Uint256Type
    amount: Uint256Type


class MarketItemOrder(Base):
    """An offer on a listed market item."""

    __tablename__ = "market_item_orders"

    order_manager_address: StringPrimaryKeyType
    order_id: BigIntegerPrimaryKeyType
    market_item_order_id: BigIntegerType
    market_item_id: BigIntegerType
