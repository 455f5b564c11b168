"""
Offers (orders) against NFTs, held in escrow until accepted or canceled.

A wallet order bids for an NFT sitting in someone's wallet; a market item order bids for
a marketplace listing. Both escrow the full bid when created. Re-offering on the same
asset while the previous order is still pending revises it in place: a higher bid pulls
the difference, a lower one refunds it.
"""

import logging
from typing import Optional

from sqlalchemy import select

from marketplace_ledger.contracts.access.admin import AdminControlled
from marketplace_ledger.contracts.access.pausable import Pausable
from marketplace_ledger.contracts.marketplace.marketplace import (
    Marketplace,
    distribute_sale,
)
from marketplace_ledger.contracts.marketplace.marketplace_enums import (
    MarketItemStatus,
    OrderKind,
    OrderStatus,
)
from marketplace_ledger.contracts.marketplace.models import (
    MarketItemOrder,
    Order,
    OrderManagerState,
    WalletOrder,
)
from marketplace_ledger.contracts.nft.erc721 import ERC721
from marketplace_ledger.contracts.nft.transfers import nft_at, nft_balance, transfer_nft
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    CanNotUpdatePaymentToken,
    EitherNotInWhitelistOrNotOwnMetaCitizenNFT,
    InvalidAddress,
    InvalidAmount,
    InvalidMarketItemId,
    InvalidNftAddress,
    InvalidOrderId,
    InvalidOrderTime,
    InvalidOwner,
    InvalidWallet,
    MarketItemIsNotAvailable,
    NotEqualPrice,
    NotInTheOrderTime,
    NotTheOwnerOfOrder,
    NotTheSeller,
    OrderIsExpired,
    OrderIsNotAvailable,
    PaymentTokenIsNotSupported,
    UserCanNotOffer,
)
from marketplace_ledger.utils.general_utils import is_zero_address, to_address


class OrderManager(Pausable, AdminControlled, Contract):
    contract_type = ContractType.ORDER_MANAGER

    @transaction
    def initialize(self, caller: str, marketplace: str) -> None:
        if self.ledger.contract_type_of(marketplace) != ContractType.MARKETPLACE:
            raise InvalidAddress(marketplace)
        self.store(
            OrderManagerState(
                address=self.address,
                marketplace=marketplace,
                order_counter=0,
                wallet_order_counter=0,
                market_item_order_counter=0,
            )
        )

    def _state(self) -> OrderManagerState:
        return self.session.get(OrderManagerState, self.address)

    def _marketplace(self) -> Marketplace:
        return self.contract_at(self._state().marketplace)

    def registry_address(self) -> str:
        return self._marketplace().registry_address()

    def _order(self, order_id: int) -> Order:
        order = self.session.get(Order, (self.address, order_id))
        if order is None:
            raise InvalidOrderId(order_id)
        return order

    def _new_order(
        self,
        kind: OrderKind,
        owner: str,
        payment_token: str,
        bid_price: int,
        expired_time: int,
    ) -> Order:
        state = self._state()
        state.order_counter += 1
        return self.store(
            Order(
                order_manager_address=self.address,
                order_id=state.order_counter,
                kind=int(kind),
                owner=owner,
                payment_token=payment_token,
                bid_price=bid_price,
                status=int(OrderStatus.PENDING),
                expired_time=expired_time,
                transaction_version=self.transaction_version(),
            )
        )

    def _revise_bid(
        self, order: Order, caller: str, bid_price: int, value: int
    ) -> None:
        if bid_price > order.bid_price:
            self.collect_payment(
                order.payment_token, caller, bid_price - order.bid_price, value
            )
        else:
            if value != 0:
                raise InvalidAmount(value)
            self.send_payment(order.payment_token, caller, order.bid_price - bid_price)
        order.bid_price = bid_price

    def _pending_wallet_order(
        self, owner: str, to: str, nft_address: str, token_id: int
    ) -> Optional[tuple[Order, WalletOrder]]:
        row = self.session.execute(
            select(Order, WalletOrder)
            .join(
                WalletOrder,
                (WalletOrder.order_manager_address == Order.order_manager_address)
                & (WalletOrder.order_id == Order.order_id),
            )
            .where(
                Order.order_manager_address == self.address,
                Order.owner == owner,
                Order.status == int(OrderStatus.PENDING),
                WalletOrder.to == to,
                WalletOrder.nft_address == nft_address,
                WalletOrder.token_id == token_id,
            )
        ).first()
        return (row[0], row[1]) if row is not None else None

    def _pending_market_item_order(
        self, owner: str, market_item_id: int
    ) -> Optional[Order]:
        return self.session.scalars(
            select(Order)
            .join(
                MarketItemOrder,
                (MarketItemOrder.order_manager_address == Order.order_manager_address)
                & (MarketItemOrder.order_id == Order.order_id),
            )
            .where(
                Order.order_manager_address == self.address,
                Order.owner == owner,
                Order.status == int(OrderStatus.PENDING),
                MarketItemOrder.market_item_id == market_item_id,
            )
        ).first()

    # Queries
    @view
    def get_marketplace(self) -> str:
        return self._state().marketplace

    @view
    def get_current_order_id(self) -> int:
        return self._state().order_counter

    @view
    def get_current_wallet_order_id(self) -> int:
        return self._state().wallet_order_counter

    @view
    def get_current_market_item_order_id(self) -> int:
        return self._state().market_item_order_counter

    @view
    def get_order(self, order_id: int) -> Order:
        return self._order(order_id)

    @view
    def get_wallet_order(self, order_id: int) -> Optional[WalletOrder]:
        return self.session.get(WalletOrder, (self.address, order_id))

    @view
    def get_market_item_order(self, order_id: int) -> Optional[MarketItemOrder]:
        return self.session.get(MarketItemOrder, (self.address, order_id))

    # Entrypoints
    @transaction
    def make_wallet_order(
        self,
        caller: str,
        payment_token: str,
        bid_price: int,
        to: str,
        nft_address: str,
        token_id: int,
        amount: int,
        expired_time: int,
        value: int = 0,
    ) -> int:
        self.when_not_paused()
        admin = self.admin_contract()
        payment_token = to_address(payment_token)
        if not admin.is_permitted_payment_token(payment_token):
            raise PaymentTokenIsNotSupported(payment_token)
        if bid_price <= 0 or amount <= 0:
            raise InvalidAmount(bid_price, amount)
        if is_zero_address(to) or self.ledger.is_contract(to):
            raise InvalidWallet(to)
        if expired_time <= self.now():
            raise InvalidOrderTime(expired_time)
        if caller == to:
            raise UserCanNotOffer(caller)
        token = nft_at(self, nft_address)
        if token is None or not admin.is_permitted_nft(nft_address):
            raise InvalidNftAddress(nft_address)
        if isinstance(token, ERC721):
            if nft_balance(self, nft_address, to, token_id) == 0:
                raise InvalidOwner(to)
            if amount != 1:
                raise InvalidAmount(amount)
        elif nft_balance(self, nft_address, to, token_id) < amount:
            raise InvalidAmount(amount)

        pending = self._pending_wallet_order(caller, to, nft_address, token_id)
        if pending is not None:
            order, wallet_order = pending
            if order.payment_token != payment_token:
                raise CanNotUpdatePaymentToken(order.payment_token, payment_token)
            self._revise_bid(order, caller, bid_price, value)
            order.expired_time = expired_time
            wallet_order.amount = amount
            self.emit(
                "OrderUpdated",
                order_id=order.order_id,
                bid_price=bid_price,
                amount=amount,
                expired_time=expired_time,
            )
            return order.order_id

        self.collect_payment(payment_token, caller, bid_price, value)
        order = self._new_order(
            OrderKind.WALLET, caller, payment_token, bid_price, expired_time
        )
        state = self._state()
        state.wallet_order_counter += 1
        self.store(
            WalletOrder(
                order_manager_address=self.address,
                order_id=order.order_id,
                wallet_order_id=state.wallet_order_counter,
                to=to,
                nft_address=nft_address,
                token_id=token_id,
                amount=amount,
            )
        )
        self.emit(
            "WalletOrderCreated",
            order_id=order.order_id,
            owner=caller,
            to=to,
            nft_address=nft_address,
            token_id=token_id,
            amount=amount,
            payment_token=payment_token,
            bid_price=bid_price,
            expired_time=expired_time,
        )
        logging.info(
            "[OrderManager] Wallet order created",
            extra={
                "order_manager_address": self.address,
                "order_id": order.order_id,
                "owner": caller,
                "to": to,
            },
        )
        return order.order_id

    @transaction
    def make_market_item_order(
        self,
        caller: str,
        market_item_id: int,
        bid_price: int,
        expired_time: int,
        proof: Optional[list[str]] = None,
        value: int = 0,
    ) -> int:
        self.when_not_paused()
        marketplace = self._marketplace()
        if not 0 < market_item_id <= marketplace.get_current_market_item():
            raise InvalidMarketItemId(market_item_id)
        if bid_price <= 0:
            raise InvalidAmount(bid_price)
        now = self.now()
        if expired_time <= now:
            raise InvalidOrderTime(expired_time)
        item = marketplace.get_market_item(market_item_id)
        if item.status != MarketItemStatus.LISTING:
            raise MarketItemIsNotAvailable(market_item_id)
        if not item.start_time <= now < item.end_time or expired_time > item.end_time:
            raise NotInTheOrderTime(market_item_id)
        if caller == item.seller:
            raise UserCanNotOffer(caller)
        if not marketplace.verify(market_item_id, proof, caller):
            raise EitherNotInWhitelistOrNotOwnMetaCitizenNFT(caller)

        order = self._pending_market_item_order(caller, market_item_id)
        if order is not None:
            self._revise_bid(order, caller, bid_price, value)
            order.expired_time = expired_time
            self.emit(
                "OrderUpdated",
                order_id=order.order_id,
                bid_price=bid_price,
                expired_time=expired_time,
            )
            return order.order_id

        self.collect_payment(item.payment_token, caller, bid_price, value)
        order = self._new_order(
            OrderKind.MARKET_ITEM, caller, item.payment_token, bid_price, expired_time
        )
        state = self._state()
        state.market_item_order_counter += 1
        self.store(
            MarketItemOrder(
                order_manager_address=self.address,
                order_id=order.order_id,
                market_item_order_id=state.market_item_order_counter,
                market_item_id=market_item_id,
            )
        )
        self.emit(
            "MarketItemOrderCreated",
            order_id=order.order_id,
            owner=caller,
            market_item_id=market_item_id,
            payment_token=item.payment_token,
            bid_price=bid_price,
            expired_time=expired_time,
        )
        return order.order_id

    @transaction
    def accept_order(self, caller: str, order_id: int, bid_price: int) -> None:
        self.when_not_paused()
        order = self._order(order_id)
        marketplace = self._marketplace()

        if order.kind == OrderKind.WALLET:
            wallet_order = self.session.get(WalletOrder, (self.address, order_id))
            if caller != wallet_order.to:
                raise NotTheSeller(caller, wallet_order.to)
            nft_address, token_id = wallet_order.nft_address, wallet_order.token_id
        else:
            market_item_order = self.session.get(
                MarketItemOrder, (self.address, order_id)
            )
            item = marketplace.get_market_item(market_item_order.market_item_id)
            if caller != item.seller:
                raise NotTheSeller(caller, item.seller)
            if item.status != MarketItemStatus.LISTING:
                raise MarketItemIsNotAvailable(item.market_item_id)
            nft_address, token_id = item.nft_contract_address, item.token_id

        if order.status != OrderStatus.PENDING:
            raise OrderIsNotAvailable(order_id)
        if self.now() > order.expired_time:
            raise OrderIsExpired(order_id)
        if bid_price != order.bid_price:
            raise NotEqualPrice(bid_price, order.bid_price)

        order.status = int(OrderStatus.ACCEPTED)
        split = marketplace.get_sale_split(nft_address, token_id, order.bid_price)
        if order.kind == OrderKind.WALLET:
            transfer_nft(
                self,
                nft_address,
                caller,
                order.owner,
                token_id,
                wallet_order.amount,
            )
        else:
            marketplace.release_for_order(
                self.address, item.market_item_id, order.owner, order.bid_price
            )
        distribute_sale(
            self, order.payment_token, caller, self.treasury_address(), split
        )

        self.emit(
            "OrderAccepted",
            order_id=order_id,
            seller=caller,
            buyer=order.owner,
            bid_price=order.bid_price,
            listing_fee=split.listing_fee,
            royalty_receiver=split.royalty_receiver,
            royalty_amount=split.royalty_amount,
            net_sale_value=split.net_sale_value,
        )
        logging.info(
            "[OrderManager] Order accepted",
            extra={
                "order_manager_address": self.address,
                "order_id": order_id,
                "seller": caller,
                "buyer": order.owner,
            },
        )

    @transaction
    def cancel_order(self, caller: str, order_id: int) -> None:
        self.when_not_paused()
        order = self._order(order_id)
        if order.owner != caller:
            raise NotTheOwnerOfOrder(caller, order.owner)
        if order.status != OrderStatus.PENDING:
            raise OrderIsNotAvailable(order_id)

        order.status = int(OrderStatus.CANCELED)
        self.send_payment(order.payment_token, caller, order.bid_price)
        self.emit("OrderCanceled", order_id=order_id, owner=caller)
