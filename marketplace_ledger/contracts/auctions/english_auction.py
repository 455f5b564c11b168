"""
Ascending-price auction for a single escrowed NFT.

Bids are escrowed by the auction. Being outbid does not push the funds back: the
previous highest bid becomes a refundable balance that its bidder drains with
`withdraw`. The owner settles the auction with `end`, which hands the NFT to the
highest bidder and the highest bid to the owner.
"""

import logging
from typing import Optional

from marketplace_ledger.contracts.auctions.models import (
    EnglishAuctionBid,
    EnglishAuctionState,
)
from marketplace_ledger.contracts.nft.transfers import nft_balance, transfer_nft
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import InvalidAddress, InvalidAmount, Revert
from marketplace_ledger.utils.general_utils import is_zero_address, to_address


class EnglishAuction(Contract):
    contract_type = ContractType.ENGLISH_AUCTION
    accepts_nft = True

    @transaction
    def initialize(
        self,
        caller: str,
        owner: str,
        nft_reward: str,
        nft_id: int,
        payment_token: Optional[str],
        starting_bid: int,
        start_time: int,
        end_time: int,
    ) -> None:
        if is_zero_address(owner):
            raise InvalidAddress(owner)
        if is_zero_address(nft_reward):
            raise InvalidAddress(nft_reward)
        if starting_bid < 0:
            raise InvalidAmount(starting_bid)
        self.require(end_time > start_time, "end < start")
        self.store(
            EnglishAuctionState(
                address=self.address,
                owner=owner,
                nft_reward=nft_reward,
                nft_id=nft_id,
                payment_token=to_address(payment_token),
                highest_bid=starting_bid,
                highest_bidder=None,
                start_time=start_time,
                end_time=end_time,
                ended=False,
            )
        )

    def _state(self) -> EnglishAuctionState:
        return self.session.get(EnglishAuctionState, self.address)

    def _bid_row(self, bidder: str) -> Optional[EnglishAuctionBid]:
        return self.session.get(EnglishAuctionBid, (self.address, bidder))

    def _only_owner(self, caller: str) -> None:
        self.require(caller == self._state().owner, "Ownable: caller is not the owner")

    def _settle(self, state: EnglishAuctionState) -> None:
        state.ended = True
        winner = state.highest_bidder
        amount = state.highest_bid if winner is not None else 0
        if winner is not None:
            transfer_nft(self, state.nft_reward, self.address, winner, state.nft_id, 1)
            self.send_payment(state.payment_token, state.owner, amount)
        elif nft_balance(self, state.nft_reward, self.address, state.nft_id) > 0:
            transfer_nft(
                self, state.nft_reward, self.address, state.owner, state.nft_id, 1
            )
        self.emit("End", winner=winner, amount=amount)
        logging.info(
            "[EnglishAuction] Auction ended",
            extra={
                "auction_address": self.address,
                "winner": winner,
                "amount": amount,
            },
        )

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
    def payment_token(self) -> str:
        return self._state().payment_token

    @view
    def highest_bid(self) -> int:
        return self._state().highest_bid

    @view
    def highest_bidder(self) -> Optional[str]:
        return self._state().highest_bidder

    @view
    def start_time(self) -> int:
        return self._state().start_time

    @view
    def end_time(self) -> int:
        return self._state().end_time

    @view
    def ended(self) -> bool:
        return self._state().ended

    @view
    def bids(self, bidder: str) -> int:
        row = self._bid_row(bidder)
        return row.amount if row is not None else 0

    # Entrypoints
    @transaction
    def bid(self, caller: str, amount: int, value: int = 0) -> None:
        state = self._state()
        now = self.now()
        self.require(now >= state.start_time, "not started")
        self.require(not state.ended and now < state.end_time, "ended")
        self.require(amount > state.highest_bid, "amount < highest")

        self.collect_payment(state.payment_token, caller, amount, value)
        previous = state.highest_bidder
        if previous is not None:
            row = self._bid_row(previous)
            if row is None:
                self.store(
                    EnglishAuctionBid(
                        auction_address=self.address,
                        bidder=previous,
                        amount=state.highest_bid,
                    )
                )
            else:
                row.amount += state.highest_bid
        state.highest_bidder = caller
        state.highest_bid = amount
        self.emit("Bid", sender=caller, amount=amount)

    @transaction
    def withdraw(self, caller: str) -> int:
        """Returns the caller's outbid balance.

        After the end time the owner's withdraw also settles an auction that was never
        ended explicitly.
        """
        state = self._state()
        if (
            caller == state.owner
            and not state.ended
            and self.now() >= state.end_time
        ):
            self._settle(state)
        if not state.ended:
            self.require(
                caller != state.highest_bidder, "highest bidder can not withdraw"
            )

        row = self._bid_row(caller)
        amount = row.amount if row is not None else 0
        if amount > 0:
            row.amount = 0
            self.send_payment(state.payment_token, caller, amount)
        self.emit("Withdraw", bidder=caller, amount=amount)
        return amount

    @transaction
    def end(self, caller: str) -> None:
        self._only_owner(caller)
        state = self._state()
        now = self.now()
        self.require(now >= state.start_time, "not started")
        self.require(not state.ended and now < state.end_time, "ended")
        self._settle(state)
