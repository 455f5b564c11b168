"""
Revert conditions raised by contract entrypoints.

A `Revert` aborts the enclosing ledger transaction: the database transaction is rolled
back and the exception propagates to the caller unchanged. Plain string reasons are
raised as `Revert("reason")`; named errors are `CustomError` subclasses whose message
renders as `Name(arg1, arg2)`:

    raise NotTheSeller(caller, item.seller)
    # NotTheSeller('0xab..', '0xcd..')
"""


class Revert(Exception):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class CustomError(Revert):
    def __init__(self, *args):
        self.args_ = args
        rendered = ", ".join(repr(arg) for arg in args)
        super().__init__(f"{type(self).__name__}({rendered})")


# Access control
class CallerIsNotOwnerOrAdmin(CustomError):
    pass


class CallerIsNotOwner(CustomError):
    pass


class CallerIsNotFactory(CustomError):
    pass


class CallerIsNotOrderManager(CustomError):
    pass


class InValidAdminContract(CustomError):
    pass


# Input validation
class InvalidAddress(CustomError):
    pass


class InvalidWallet(CustomError):
    pass


class InvalidAmount(CustomError):
    pass


class InvalidLength(CustomError):
    pass


class InvalidArrayInput(CustomError):
    pass


class ExceedAmount(CustomError):
    pass


class InvalidEndTime(CustomError):
    pass


class InvalidOrderTime(CustomError):
    pass


class PaymentTokenIsNotSupported(CustomError):
    pass


class InvalidNftAddress(CustomError):
    pass


class InvalidNftType(CustomError):
    pass


class InvalidAuctionType(CustomError):
    pass


class InvalidOwner(CustomError):
    pass


class TokenIsNotExisted(CustomError):
    pass


class URIQueryNonExistToken(CustomError):
    pass


# Marketplace
class InvalidMarketItemId(CustomError):
    pass


class MarketItemIsNotAvailable(CustomError):
    pass


class MarketItemIsNotSelling(CustomError):
    pass


class CanNotBuyYourNFT(CustomError):
    pass


class NotTheSeller(CustomError):
    pass


class EitherNotInWhitelistOrNotOwnMetaCitizenNFT(CustomError):
    pass


# Orders
class InvalidOrderId(CustomError):
    pass


class OrderIsNotAvailable(CustomError):
    pass


class OrderIsExpired(CustomError):
    pass


class NotInTheOrderTime(CustomError):
    pass


class NotEqualPrice(CustomError):
    pass


class NotTheOwnerOfOrder(CustomError):
    pass


class UserCanNotOffer(CustomError):
    pass


class CanNotUpdatePaymentToken(CustomError):
    pass


# Collections
class InvalidMaxCollection(CustomError):
    pass


class InvalidMaxTotalSupply(CustomError):
    pass


class InvalidMaxCollectionOfUser(CustomError):
    pass


class ExceedMaxCollection(CustomError):
    pass


class ExceedTotalSupply(CustomError):
    pass


class InvalidMaxBatch(CustomError):
    pass


class CloneFailed(CustomError):
    pass


# Staking
class InvalidPoolParameters(CustomError):
    pass


class PoolIsNotActive(CustomError):
    pass


class StakeIsLocked(CustomError):
    pass


class NothingToClaim(CustomError):
    pass
