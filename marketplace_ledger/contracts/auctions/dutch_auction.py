import logging
from typing import Optional

from marketplace_ledger.contracts.auctions.models import DutchAuctionState
from marketplace_ledger.contracts.nft.transfers import nft_balance, transfer_nft
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import InvalidAddress, InvalidAmount
from marketplace_ledger.utils.general_utils import is_zero_address, to_address


class DutchAuction(Contract):
    """Descending-price sale of a single escrowed NFT.

    The price falls by `discount_rate` per second from `starting_price` at the start
    time and stops falling at the end time, so it never goes below
    `starting_price - discount_rate * (end_time - start_time)`. The first buyer
    offering at least the current price wins and pays the current price.
    """

    contract_type = ContractType.DUTCH_AUCTION
    accepts_nft = True

    @transaction
    def initialize(
        self,
        caller: str,
        owner: str,
        nft_reward: str,
        nft_id: int,
        payment_token: Optional[str],
        starting_price: int,
        start_time: int,
        end_time: int,
        discount_rate: int,
    ) -> None:
        if is_zero_address(owner):
            raise InvalidAddress(owner)
        if is_zero_address(nft_reward):
            raise InvalidAddress(nft_reward)
        if discount_rate <= 0:
            raise InvalidAmount(discount_rate)
        self.require(end_time > start_time, "end < start")
        self.require(
            starting_price >= discount_rate * (end_time - start_time),
            "starting price < min",
        )
        self.store(
            DutchAuctionState(
                address=self.address,
                owner=owner,
                nft_reward=nft_reward,
                nft_id=nft_id,
                payment_token=to_address(payment_token),
                starting_price=starting_price,
                discount_rate=discount_rate,
                start_time=start_time,
                end_time=end_time,
                buyer=None,
                sold_price=0,
                is_ended=False,
            )
        )

    def _state(self) -> DutchAuctionState:
        return self.session.get(DutchAuctionState, self.address)

    def _price_at(self, state: DutchAuctionState, timestamp: int) -> int:
        elapsed = min(max(timestamp, state.start_time), state.end_time) - state.start_time
        return state.starting_price - state.discount_rate * elapsed

    # Queries
    @view
    def owner(self) -> str:
        return self._state().owner

    @view
    def nft_reward(self) -> str:
        return self._state().nft_reward

    @view
    def nft_id(self) -> int:
        return self._state().nft_id

    @view
    def starting_price(self) -> int:
        return self._state().starting_price

    @view
    def discount_rate(self) -> int:
        return self._state().discount_rate

    @view
    def payment_token(self) -> str:
        return self._state().payment_token

    @view
    def is_ended(self) -> bool:
        return self._state().is_ended

    @view
    def buyer(self) -> Optional[str]:
        return self._state().buyer

    @view
    def get_price(self) -> int:
        return self._price_at(self._state(), self.now())

    # Entrypoints
    @transaction
    def buy(self, caller: str, offer: int, value: int = 0) -> int:
        state = self._state()
        now = self.now()
        self.require(now >= state.start_time, "not started")
        self.require(not state.is_ended and now < state.end_time, "ended")
        price = self._price_at(state, now)
        self.require(offer >= price, "value < price")

        state.buyer = caller
        state.sold_price = price
        state.is_ended = True
        if is_zero_address(state.payment_token):
            self.collect_payment(state.payment_token, caller, offer, value)
            self.send_payment(state.payment_token, caller, offer - price)
        else:
            self.collect_payment(state.payment_token, caller, price, value)
        transfer_nft(self, state.nft_reward, self.address, caller, state.nft_id, 1)
        self.send_payment(state.payment_token, state.owner, price)

        self.emit("Bought", buyer=caller, price=price)
        logging.info(
            "[DutchAuction] NFT bought",
            extra={
                "auction_address": self.address,
                "buyer": caller,
                "price": price,
            },
        )
        return price

    @transaction
    def withdraw(self, caller: str) -> None:
        state = self._state()
        self.require(caller == state.owner, "Ownable: caller is not the owner")
        state.is_ended = True
        if nft_balance(self, state.nft_reward, self.address, state.nft_id) > 0:
            transfer_nft(
                self, state.nft_reward, self.address, state.owner, state.nft_id, 1
            )
        self.emit("Withdraw", owner=caller)
