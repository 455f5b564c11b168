import logging
from enum import IntEnum
from typing import Optional

from sqlalchemy import select

from marketplace_ledger.contracts.access.admin import AdminControlled, registry_at
from marketplace_ledger.contracts.access.pausable import Pausable
from marketplace_ledger.contracts.auctions.models import (
    AuctionFactoryState,
    AuctionRecord,
)
from marketplace_ledger.contracts.nft.transfers import nft_at, transfer_nft
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    InvalidAddress,
    InvalidAuctionType,
    InvalidNftAddress,
    PaymentTokenIsNotSupported,
)
from marketplace_ledger.utils.general_utils import is_zero_address, to_address


class AuctionType(IntEnum):
    DUTCH = 0
    ENGLISH = 1


def parse_auction_type(value: int) -> AuctionType:
    try:
        return AuctionType(value)
    except ValueError:
        raise InvalidAuctionType(value) from None


class AuctionFactory(Pausable, AdminControlled, Contract):
    """Clones a Dutch or English auction per sale and escrows the NFT into it."""

    contract_type = ContractType.AUCTION_FACTORY

    @transaction
    def initialize(
        self,
        caller: str,
        dutch_template: str,
        english_template: str,
        registry: str,
    ) -> None:
        registry_at(self, registry)
        if is_zero_address(dutch_template) or is_zero_address(english_template):
            raise InvalidAddress(dutch_template, english_template)
        self.store(
            AuctionFactoryState(
                address=self.address,
                registry_address=registry,
                dutch_template=dutch_template,
                english_template=english_template,
                auction_counter=0,
            )
        )

    def _state(self) -> AuctionFactoryState:
        return self.session.get(AuctionFactoryState, self.address)

    def registry_address(self) -> str:
        return self._state().registry_address

    def _records_of(self, user: str) -> list[AuctionRecord]:
        return list(
            self.session.scalars(
                select(AuctionRecord)
                .where(
                    AuctionRecord.factory_address == self.address,
                    AuctionRecord.owner == user,
                )
                .order_by(AuctionRecord.auction_id)
            )
        )

    # Queries
    @view
    def dutch_template(self) -> str:
        return self._state().dutch_template

    @view
    def english_template(self) -> str:
        return self._state().english_template

    @view
    def get_auction_id(self) -> int:
        return self._state().auction_counter

    @view
    def get_auction_by_user(self, user: str) -> list[str]:
        return [record.auction_address for record in self._records_of(user)]

    @view
    def check_auction_of_user(self, user: str, auction_address: str) -> bool:
        return any(
            record.auction_address == auction_address
            for record in self._records_of(user)
        )

    @view
    def get_auction(self, auction_id: int) -> Optional[AuctionRecord]:
        return self.session.get(AuctionRecord, (self.address, auction_id))

    # Entrypoints
    @transaction
    def set_dutch_template(self, caller: str, template: str) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(template):
            raise InvalidAddress(template)
        self._state().dutch_template = template

    @transaction
    def set_english_template(self, caller: str, template: str) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(template):
            raise InvalidAddress(template)
        self._state().english_template = template

    @transaction
    def create(
        self,
        caller: str,
        auction_type: int,
        nft_address: str,
        nft_id: int,
        payment_token: Optional[str],
        starting_price: int,
        start_time: int,
        end_time: int,
        discount_rate: int,
    ) -> str:
        self.when_not_paused()
        auction_type = parse_auction_type(auction_type)
        payment_token = to_address(payment_token)
        if not self.admin_contract().is_permitted_payment_token(payment_token):
            raise PaymentTokenIsNotSupported(payment_token)
        if nft_at(self, nft_address) is None:
            raise InvalidNftAddress(nft_address)

        state = self._state()
        if auction_type == AuctionType.DUTCH:
            auction = self.ledger.clone(
                state.dutch_template,
                self.address,
                caller,
                nft_address,
                nft_id,
                payment_token,
                starting_price,
                start_time,
                end_time,
                discount_rate,
            )
        else:
            auction = self.ledger.clone(
                state.english_template,
                self.address,
                caller,
                nft_address,
                nft_id,
                payment_token,
                starting_price,
                start_time,
                end_time,
            )
        transfer_nft(self, nft_address, caller, auction.address, nft_id, 1)

        state.auction_counter += 1
        auction_id = state.auction_counter
        self.store(
            AuctionRecord(
                factory_address=self.address,
                auction_id=auction_id,
                auction_type=int(auction_type),
                auction_address=auction.address,
                owner=caller,
                nft_address=nft_address,
                nft_id=nft_id,
                transaction_version=self.transaction_version(),
            )
        )
        self.emit(
            "AuctionCreated",
            auction_id=auction_id,
            auction_type=int(auction_type),
            auction_address=auction.address,
            owner=caller,
            nft_address=nft_address,
            nft_id=nft_id,
        )
        logging.info(
            "[AuctionFactory] Auction created",
            extra={
                "factory_address": self.address,
                "auction_id": auction_id,
                "auction_address": auction.address,
                "owner": caller,
            },
        )
        return auction.address
