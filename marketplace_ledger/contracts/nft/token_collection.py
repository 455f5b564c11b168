"""
Per-user collection templates cloned by the collection factory.

Each clone is Ownable by the user who created it and remembers the factory that cloned
it. Owners and their locally appointed admins mint; the factory can appoint admins
(the NFT manager) on the owner's behalf.
"""

from typing import Optional

from marketplace_ledger.contracts.nft.erc721 import ERC721
from marketplace_ledger.contracts.nft.erc1155 import ERC1155
from marketplace_ledger.contracts.nft.models import CollectionAdmin
from marketplace_ledger.utils.contract import transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    CallerIsNotFactory,
    CallerIsNotOwnerOrAdmin,
    ExceedAmount,
    ExceedTotalSupply,
    InvalidAddress,
    InvalidAmount,
    InvalidArrayInput,
    InvalidMaxBatch,
    Revert,
)
from marketplace_ledger.utils.general_utils import is_zero_address


class CollectionOwnable:
    def _init_owned_collection(
        self,
        factory: str,
        owner: str,
        name: str,
        symbol: str,
        max_total_supply: int,
        royalty_receiver: Optional[str],
        royalty_bps: int,
    ) -> None:
        if is_zero_address(owner):
            raise Revert("Ownable: new owner is the zero address")
        self._init_collection(
            name,
            symbol,
            owner=owner,
            factory=factory,
            max_total_supply=max_total_supply,
            max_batch=self.ledger.config.collection.max_batch,
        )
        self._set_default_royalty(royalty_receiver, royalty_bps)

    def _only_owner(self, caller: str) -> None:
        if caller != self._info().owner:
            raise Revert("Ownable: caller is not the owner")

    def _set_collection_admin(self, account: str, allow: bool) -> None:
        if is_zero_address(account):
            raise InvalidAddress(account)
        admin = self.session.get(CollectionAdmin, (self.address, account))
        if admin is None:
            self.store(
                CollectionAdmin(
                    contract_address=self.address, account=account, is_admin=allow
                )
            )
        else:
            admin.is_admin = allow
        self.emit("SetAdmin", account=account, allow=allow)

    def check_owner_or_admin(self, caller: str) -> None:
        if not self.is_admin(caller):
            raise CallerIsNotOwnerOrAdmin(caller)

    def _reserve_supply(self, count: int) -> None:
        info = self._info()
        if info.token_counter + count > info.max_total_supply:
            raise ExceedTotalSupply(info.max_total_supply)

    @view
    def owner(self) -> str:
        return self._info().owner

    @view
    def factory(self) -> str:
        return self._info().factory

    @view
    def max_total_supply(self) -> int:
        return self._info().max_total_supply

    @view
    def max_batch(self) -> int:
        return self._info().max_batch

    @view
    def is_admin(self, account: str) -> bool:
        if account == self._info().owner:
            return True
        admin = self.session.get(CollectionAdmin, (self.address, account))
        return admin is not None and admin.is_admin

    @transaction
    def set_admin(self, caller: str, account: str, allow: bool) -> None:
        self._only_owner(caller)
        self._set_collection_admin(account, allow)

    @transaction
    def set_admin_by_factory(self, caller: str, account: str, allow: bool) -> None:
        if caller != self._info().factory:
            raise CallerIsNotFactory(caller)
        self._set_collection_admin(account, allow)

    @transaction
    def set_max_batch(self, caller: str, max_batch: int) -> None:
        self.check_owner_or_admin(caller)
        if max_batch <= 0:
            raise InvalidMaxBatch(max_batch)
        self._info().max_batch = max_batch

    @transaction
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._only_owner(caller)
        if is_zero_address(new_owner):
            raise Revert("Ownable: new owner is the zero address")
        self._info().owner = new_owner

    @transaction
    def set_uri(self, caller: str, uri: str, token_id: int) -> None:
        self.check_owner_or_admin(caller)
        self._set_token_uri(token_id, uri)


class TokenERC721(CollectionOwnable, ERC721):
    contract_type = ContractType.TOKEN_ERC721

    @transaction
    def initialize(
        self,
        caller: str,
        owner: str,
        name: str,
        symbol: str,
        max_total_supply: int,
        royalty_receiver: Optional[str],
        royalty_bps: int,
    ) -> None:
        self._init_owned_collection(
            caller,
            owner,
            name,
            symbol,
            max_total_supply,
            royalty_receiver,
            royalty_bps,
        )

    @transaction
    def mint(self, caller: str, to: str, uri: str) -> int:
        self.check_owner_or_admin(caller)
        if is_zero_address(to):
            raise InvalidAddress(to)
        self._reserve_supply(1)
        token_id = self._next_token_id()
        self._mint(to, token_id, uri)
        return token_id

    @transaction
    def mint_batch(self, caller: str, to: str, uris: list[str]) -> list[int]:
        self.check_owner_or_admin(caller)
        if is_zero_address(to):
            raise InvalidAddress(to)
        if len(uris) == 0:
            raise InvalidArrayInput()
        if len(uris) > self._info().max_batch:
            raise ExceedAmount(len(uris))
        self._reserve_supply(len(uris))
        token_ids = []
        for uri in uris:
            token_id = self._next_token_id()
            self._mint(to, token_id, uri)
            token_ids.append(token_id)
        self.emit("MintedBatch", token_ids=token_ids, uris=uris, to=to)
        return token_ids


class TokenERC1155(CollectionOwnable, ERC1155):
    contract_type = ContractType.TOKEN_ERC1155

    @transaction
    def initialize(
        self,
        caller: str,
        owner: str,
        name: str,
        symbol: str,
        max_total_supply: int,
        royalty_receiver: Optional[str],
        royalty_bps: int,
    ) -> None:
        self._init_owned_collection(
            caller,
            owner,
            name,
            symbol,
            max_total_supply,
            royalty_receiver,
            royalty_bps,
        )

    @transaction
    def mint(self, caller: str, to: str, amount: int, uri: str) -> int:
        self.check_owner_or_admin(caller)
        if is_zero_address(to):
            raise InvalidAddress(to)
        if amount <= 0:
            raise InvalidAmount(amount)
        self._reserve_supply(1)
        token_id = self._next_token_id()
        self._mint(caller, to, token_id, amount, uri)
        return token_id

    @transaction
    def mint_batch(
        self, caller: str, to: str, amounts: list[int], uris: list[str]
    ) -> list[int]:
        self.check_owner_or_admin(caller)
        if is_zero_address(to):
            raise InvalidAddress(to)
        if len(amounts) == 0 or len(amounts) != len(uris):
            raise InvalidArrayInput()
        if len(amounts) > self._info().max_batch:
            raise ExceedAmount(len(amounts))
        self._reserve_supply(len(amounts))
        token_ids = []
        for amount, uri in zip(amounts, uris):
            if amount <= 0:
                raise InvalidAmount(amount)
            token_id = self._next_token_id()
            self._mint(caller, to, token_id, amount, uri)
            token_ids.append(token_id)
        self.emit(
            "MintedBatch", token_ids=token_ids, amounts=amounts, uris=uris, to=to
        )
        return token_ids
