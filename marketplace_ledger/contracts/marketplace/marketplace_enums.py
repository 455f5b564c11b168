from dataclasses import dataclass
from enum import IntEnum


class MarketItemStatus(IntEnum):
    LISTING = 0
    SOLD = 1
    CANCELED = 2


class OrderStatus(IntEnum):
    PENDING = 0
    ACCEPTED = 1
    CANCELED = 2


class OrderKind(IntEnum):
    WALLET = 0
    MARKET_ITEM = 1


@dataclass
class SaleSplit:
    price: int
    listing_fee: int
    royalty_receiver: str
    royalty_amount: int
    net_sale_value: int
