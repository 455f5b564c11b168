from marketplace_ledger.utils.models.annotated_types import (
    BigIntegerPrimaryKeyType,
    BigIntegerType,
    BooleanType,
    InsertedAtType,
    IntegerType,
    NullableStringType,
    StringPrimaryKeyType,
    StringType,
    Uint256Type,
    UpdatedAtType,
)
from marketplace_ledger.utils.models.general_models import Base


class AuctionFactoryState(Base):
    __tablename__ = "auction_factories"

    address: StringPrimaryKeyType
    registry_address: StringType
    dutch_template: StringType
    english_template: StringType
    auction_counter: BigIntegerType


class AuctionRecord(Base):
    __tablename__ = "auction_records"

    factory_address: StringPrimaryKeyType
    auction_id: BigIntegerPrimaryKeyType
    auction_type: IntegerType
    auction_address: StringType
    owner: StringType
    nft_address: StringType
    nft_id: Uint256Type
    transaction_version: BigIntegerType
    inserted_at: InsertedAtType


class EnglishAuctionState(Base):
    __tablename__ = "english_auctions"

    address: StringPrimaryKeyType
    owner: StringType
    nft_reward: StringType
    nft_id: Uint256Type
    payment_token: StringType
    highest_bid: Uint256Type
    highest_bidder: NullableStringType
    start_time: BigIntegerType
    end_time: BigIntegerType
    ended: BooleanType
    updated_at: UpdatedAtType


class EnglishAuctionBid(Base):
    """Refundable balance of an outbid bidder, drained by `withdraw`."""

    __tablename__ = "english_auction_bids"

    auction_address: StringPrimaryKeyType
    bidder: StringPrimaryKeyType
    amount: Uint256Type


class DutchAuctionState(Base):
    __tablename__ = "dutch_auctions"

    address: StringPrimaryKeyType
    owner: StringType
    nft_reward: StringType
    nft_id: Uint256Type
    payment_token: StringType
    starting_price: Uint256Type
    discount_rate: Uint256Type
    start_time: BigIntegerType
    end_time: BigIntegerType
    buyer: NullableStringType
    sold_price: Uint256Type
    is_ended: BooleanType
    updated_at: UpdatedAtType
