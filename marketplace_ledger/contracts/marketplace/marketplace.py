import logging
from typing import Optional

from marketplace_ledger.contracts.access.admin import AdminControlled, registry_at
from marketplace_ledger.contracts.access.pausable import Pausable
from marketplace_ledger.contracts.marketplace.marketplace_enums import (
    MarketItemStatus,
    SaleSplit,
)
from marketplace_ledger.contracts.marketplace.models import (
    MarketItem,
    MarketplaceBuyer,
    MarketplaceState,
)
from marketplace_ledger.contracts.nft.erc721 import ERC721
from marketplace_ledger.contracts.nft.nft_enums import INTERFACE_ID_ERC2981
from marketplace_ledger.contracts.nft.transfers import nft_at, nft_balance, transfer_nft
from marketplace_ledger.utils import merkle
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    CallerIsNotOrderManager,
    CanNotBuyYourNFT,
    EitherNotInWhitelistOrNotOwnMetaCitizenNFT,
    InvalidAddress,
    InvalidAmount,
    InvalidEndTime,
    InvalidMarketItemId,
    InvalidNftAddress,
    InvalidOwner,
    MarketItemIsNotAvailable,
    MarketItemIsNotSelling,
    NotTheSeller,
    OrderIsExpired,
    PaymentTokenIsNotSupported,
    TokenIsNotExisted,
)
from marketplace_ledger.utils.general_utils import (
    ZERO_ADDRESS,
    bps_of,
    is_zero_address,
    to_address,
)


def distribute_sale(
    contract: Contract,
    payment_token: str,
    seller: str,
    treasury: str,
    split: SaleSplit,
) -> None:
    """Pays a settled sale out of `contract`'s escrow.

    The listing fee goes to the treasury, the royalty to the collection's royalty
    receiver and the rest to the seller.
    """
    contract.send_payment(payment_token, treasury, split.listing_fee)
    contract.send_payment(payment_token, split.royalty_receiver, split.royalty_amount)
    contract.send_payment(payment_token, seller, split.net_sale_value)


class Marketplace(Pausable, AdminControlled, Contract):
    """Fixed-price listings of escrowed NFTs.

    A listing (market item) moves one way from LISTING to SOLD or CANCELED. Private
    listings carry a Merkle whitelist root and only accept buyers with a valid proof.
    """

    contract_type = ContractType.MARKETPLACE
    accepts_nft = True

    @transaction
    def initialize(self, caller: str, registry: str) -> None:
        registry_at(self, registry)
        self.store(
            MarketplaceState(
                address=self.address,
                registry_address=registry,
                order_manager=None,
                listing_fee_bps=self.ledger.config.marketplace.listing_fee_bps,
                market_item_counter=0,
            )
        )

    def _state(self) -> MarketplaceState:
        return self.session.get(MarketplaceState, self.address)

    def registry_address(self) -> str:
        return self._state().registry_address

    def _market_item(self, market_item_id: int) -> MarketItem:
        item = self.session.get(MarketItem, (self.address, market_item_id))
        if item is None:
            raise InvalidMarketItemId(market_item_id)
        return item

    def _record_buyer(self, account: str) -> None:
        if self.session.get(MarketplaceBuyer, (self.address, account)) is None:
            self.store(
                MarketplaceBuyer(marketplace_address=self.address, account=account)
            )

    def _validate_sale_asset(
        self, caller: str, nft_address: str, token_id: int, amount: int
    ) -> None:
        if is_zero_address(nft_address):
            raise InvalidAddress(nft_address)
        token = nft_at(self, nft_address)
        if token is None:
            raise TokenIsNotExisted(nft_address, token_id)
        if not self.admin_contract().is_permitted_nft(nft_address):
            raise InvalidNftAddress(nft_address)
        if amount <= 0:
            raise InvalidAmount(amount)
        if isinstance(token, ERC721):
            if amount != 1:
                raise InvalidAmount(amount)
            if not token.exists(token_id):
                raise TokenIsNotExisted(nft_address, token_id)
            if token.owner_of(token_id) != caller:
                raise InvalidOwner(caller)
        elif nft_balance(self, nft_address, caller, token_id) < amount:
            raise InvalidAmount(amount)

    # Queries
    @view
    def get_current_market_item(self) -> int:
        return self._state().market_item_counter

    @view
    def get_market_item(self, market_item_id: int) -> MarketItem:
        return self._market_item(market_item_id)

    @view
    def get_order_manager(self) -> Optional[str]:
        return self._state().order_manager

    @view
    def listing_fee_bps(self) -> int:
        return self._state().listing_fee_bps

    @view
    def is_private(self, market_item_id: int) -> bool:
        item = self._market_item(market_item_id)
        return not merkle.is_empty_root(item.whitelist_root)

    @view
    def verify(
        self, market_item_id: int, proof: Optional[list[str]], account: str
    ) -> bool:
        item = self._market_item(market_item_id)
        if merkle.is_empty_root(item.whitelist_root):
            return True
        leaf = merkle.generate_leaf(account)
        return merkle.verify(proof or [], item.whitelist_root, leaf)

    @view
    def was_buyer(self, account: str) -> bool:
        return self.session.get(MarketplaceBuyer, (self.address, account)) is not None

    @view
    def get_listing_fee(self, price: int) -> int:
        return bps_of(price, self._state().listing_fee_bps)

    @view
    def is_royalty(self, nft_address: str) -> bool:
        token = nft_at(self, nft_address)
        return token is not None and token.supports_interface(INTERFACE_ID_ERC2981)

    @view
    def get_royalty_info(
        self, nft_address: str, token_id: int, sale_price: int
    ) -> tuple[str, int]:
        if not self.is_royalty(nft_address):
            return ZERO_ADDRESS, 0
        return self.contract_at(nft_address).royalty_info(token_id, sale_price)

    @view
    def get_sale_split(self, nft_address: str, token_id: int, price: int) -> SaleSplit:
        listing_fee = self.get_listing_fee(price)
        royalty_receiver, royalty_amount = self.get_royalty_info(
            nft_address, token_id, price - listing_fee
        )
        return SaleSplit(
            price=price,
            listing_fee=listing_fee,
            royalty_receiver=royalty_receiver,
            royalty_amount=royalty_amount,
            net_sale_value=price - listing_fee - royalty_amount,
        )

    # Entrypoints
    @transaction
    def set_order_manager(self, caller: str, order_manager: str) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(order_manager):
            raise InvalidAddress(order_manager)
        self._state().order_manager = order_manager

    @transaction
    def sell(
        self,
        caller: str,
        nft_address: str,
        token_id: int,
        amount: int,
        price: int,
        start_time: int,
        end_time: int,
        payment_token: str,
        whitelist_root: Optional[str] = None,
    ) -> int:
        self.when_not_paused()
        self._validate_sale_asset(caller, nft_address, token_id, amount)
        if price <= 0:
            raise InvalidAmount(price)
        payment_token = to_address(payment_token)
        if not self.admin_contract().is_permitted_payment_token(payment_token):
            raise PaymentTokenIsNotSupported(payment_token)
        if end_time <= start_time or end_time <= self.now():
            raise InvalidEndTime(end_time)

        private = not merkle.is_empty_root(whitelist_root)
        state = self._state()
        state.market_item_counter += 1
        market_item_id = state.market_item_counter
        self.store(
            MarketItem(
                marketplace_address=self.address,
                market_item_id=market_item_id,
                nft_contract_address=nft_address,
                token_id=token_id,
                amount=amount,
                price=price,
                payment_token=payment_token,
                seller=caller,
                buyer=None,
                start_time=start_time,
                end_time=end_time,
                status=int(MarketItemStatus.LISTING),
                whitelist_root=whitelist_root.lower() if private else None,
                transaction_version=self.transaction_version(),
            )
        )
        transfer_nft(self, nft_address, caller, self.address, token_id, amount)

        self.emit(
            "MarketItemCreated",
            market_item_id=market_item_id,
            nft_contract=nft_address,
            token_id=token_id,
            amount=amount,
            price=price,
            payment_token=payment_token,
            seller=caller,
            start_time=start_time,
            end_time=end_time,
            is_private=private,
        )
        logging.info(
            "[Marketplace] Market item listed",
            extra={
                "marketplace_address": self.address,
                "market_item_id": market_item_id,
                "nft_contract": nft_address,
                "token_id": token_id,
                "seller": caller,
            },
        )
        return market_item_id

    @transaction
    def buy(
        self,
        caller: str,
        market_item_id: int,
        proof: Optional[list[str]] = None,
        value: int = 0,
    ) -> None:
        self.when_not_paused()
        item = self._market_item(market_item_id)
        if item.status != MarketItemStatus.LISTING:
            raise MarketItemIsNotAvailable(market_item_id)
        if item.seller == caller:
            raise CanNotBuyYourNFT(caller)
        now = self.now()
        if not item.start_time <= now < item.end_time:
            raise MarketItemIsNotSelling(market_item_id)
        if not self.verify(market_item_id, proof, caller):
            raise EitherNotInWhitelistOrNotOwnMetaCitizenNFT(caller)

        item.status = int(MarketItemStatus.SOLD)
        item.buyer = caller
        self._record_buyer(caller)

        split = self.get_sale_split(
            item.nft_contract_address, item.token_id, item.price
        )
        self.collect_payment(item.payment_token, caller, item.price, value)
        distribute_sale(
            self, item.payment_token, item.seller, self.treasury_address(), split
        )
        transfer_nft(
            self,
            item.nft_contract_address,
            self.address,
            caller,
            item.token_id,
            item.amount,
        )

        self.emit(
            "MarketItemSold",
            market_item_id=market_item_id,
            buyer=caller,
            seller=item.seller,
            price=item.price,
            listing_fee=split.listing_fee,
            royalty_receiver=split.royalty_receiver,
            royalty_amount=split.royalty_amount,
            net_sale_value=split.net_sale_value,
        )
        logging.info(
            "[Marketplace] Market item sold",
            extra={
                "marketplace_address": self.address,
                "market_item_id": market_item_id,
                "buyer": caller,
                "price": item.price,
            },
        )

    @transaction
    def cancel_sell(self, caller: str, market_item_id: int) -> None:
        self.when_not_paused()
        item = self._market_item(market_item_id)
        if item.status != MarketItemStatus.LISTING:
            raise MarketItemIsNotAvailable(market_item_id)
        if item.seller != caller:
            raise NotTheSeller(caller, item.seller)

        item.status = int(MarketItemStatus.CANCELED)
        transfer_nft(
            self,
            item.nft_contract_address,
            self.address,
            item.seller,
            item.token_id,
            item.amount,
        )
        self.emit("MarketItemCanceled", market_item_id=market_item_id, seller=caller)

    @transaction
    def sell_available_in_marketplace(
        self,
        caller: str,
        market_item_id: int,
        price: int,
        start_time: int,
        end_time: int,
    ) -> None:
        """Re-lists an item whose sale window ran out without a buyer."""
        self.when_not_paused()
        item = self._market_item(market_item_id)
        if item.status != MarketItemStatus.LISTING:
            raise MarketItemIsNotAvailable(market_item_id)
        if price <= 0:
            raise InvalidAmount(price)
        now = self.now()
        if now < item.end_time:
            raise OrderIsExpired(market_item_id)
        if item.seller != caller:
            raise NotTheSeller(caller, item.seller)
        if end_time <= now or end_time <= start_time:
            raise InvalidEndTime(end_time)

        item.price = price
        item.start_time = start_time
        item.end_time = end_time
        self.emit(
            "MarketItemRelisted",
            market_item_id=market_item_id,
            price=price,
            start_time=start_time,
            end_time=end_time,
        )

    @transaction
    def release_for_order(
        self, caller: str, market_item_id: int, buyer: str, price: int
    ) -> MarketItem:
        """Hands an escrowed listing to the winner of an accepted offer."""
        if caller != self._state().order_manager:
            raise CallerIsNotOrderManager(caller)
        item = self._market_item(market_item_id)
        if item.status != MarketItemStatus.LISTING:
            raise MarketItemIsNotAvailable(market_item_id)

        item.status = int(MarketItemStatus.SOLD)
        item.buyer = buyer
        self._record_buyer(buyer)
        transfer_nft(
            self,
            item.nft_contract_address,
            self.address,
            buyer,
            item.token_id,
            item.amount,
        )
        self.emit(
            "MarketItemSold",
            market_item_id=market_item_id,
            buyer=buyer,
            seller=item.seller,
            price=price,
            order_manager=caller,
        )
        return item
