"""
Shared mint tokens used by the NFT manager.

Every mint and URI update is gated by the access registry (owner or admin). Token ids
come from a per-contract counter starting at 1. Royalty-bearing mints route royalties
to the registry's treasury.
"""

from marketplace_ledger.contracts.access.admin import AdminControlled, registry_at
from marketplace_ledger.contracts.nft.erc721 import ERC721
from marketplace_ledger.contracts.nft.erc1155 import ERC1155
from marketplace_ledger.utils.contract import transaction
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    ExceedAmount,
    InvalidAddress,
    InvalidAmount,
    InvalidLength,
)
from marketplace_ledger.utils.general_utils import is_zero_address


class SharedMint(AdminControlled):
    def registry_address(self) -> str:
        return self._info().registry_address

    def _check_mint(self, caller: str, to: str) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(to):
            raise InvalidAddress(to)

    def _check_royalty(self, royalty_bps: int) -> str:
        if royalty_bps <= 0:
            raise InvalidAmount(royalty_bps)
        return self.treasury_address()


class TokenMintERC721(SharedMint, ERC721):
    contract_type = ContractType.TOKEN_MINT_ERC721

    @transaction
    def initialize(self, caller: str, name: str, symbol: str, registry: str) -> None:
        registry_at(self, registry)
        self._init_collection(name, symbol, registry=registry)

    def _mint_many(self, to: str, uris: list[str]) -> list[int]:
        if len(uris) == 0:
            raise InvalidLength(len(uris))
        if len(uris) > self.ledger.config.collection.max_batch:
            raise ExceedAmount(len(uris))
        token_ids = []
        for uri in uris:
            token_id = self._next_token_id()
            self._mint(to, token_id, uri)
            token_ids.append(token_id)
        return token_ids

    @transaction
    def mint(self, caller: str, to: str, uri: str) -> int:
        self._check_mint(caller, to)
        token_id = self._next_token_id()
        self._mint(to, token_id, uri)
        return token_id

    @transaction
    def mint_batch(self, caller: str, to: str, uris: list[str]) -> list[int]:
        self._check_mint(caller, to)
        token_ids = self._mint_many(to, uris)
        self.emit("MintedBatch", token_ids=token_ids, uris=uris, to=to)
        return token_ids

    @transaction
    def mint_with_royalties(
        self, caller: str, to: str, uri: str, royalty_bps: int
    ) -> int:
        self._check_mint(caller, to)
        receiver = self._check_royalty(royalty_bps)
        token_id = self._next_token_id()
        self._mint(to, token_id, uri)
        self._set_token_royalty(token_id, receiver, royalty_bps)
        return token_id

    @transaction
    def mint_batch_with_royalties(
        self, caller: str, to: str, uris: list[str], royalty_bps: int
    ) -> list[int]:
        self._check_mint(caller, to)
        receiver = self._check_royalty(royalty_bps)
        token_ids = self._mint_many(to, uris)
        for token_id in token_ids:
            self._set_token_royalty(token_id, receiver, royalty_bps)
        self.emit(
            "MintedBatch",
            token_ids=token_ids,
            uris=uris,
            to=to,
            royalty_bps=royalty_bps,
        )
        return token_ids

    @transaction
    def set_token_uri(self, caller: str, uri: str, token_id: int) -> None:
        self.check_owner_or_admin(caller)
        self._set_token_uri(token_id, uri)


class TokenMintERC1155(SharedMint, ERC1155):
    contract_type = ContractType.TOKEN_MINT_ERC1155

    @transaction
    def initialize(self, caller: str, registry: str) -> None:
        registry_at(self, registry)
        self._init_collection("", "", registry=registry)

    def _mint_many(
        self, caller: str, to: str, amounts: list[int], uris: list[str]
    ) -> list[int]:
        if len(amounts) == 0 or len(amounts) != len(uris):
            raise InvalidLength(len(amounts), len(uris))
        token_ids = []
        for amount, uri in zip(amounts, uris):
            if amount <= 0:
                raise InvalidAmount(amount)
            token_id = self._next_token_id()
            self._mint(caller, to, token_id, amount, uri)
            token_ids.append(token_id)
        return token_ids

    @transaction
    def mint(self, caller: str, to: str, amount: int, uri: str) -> int:
        self._check_mint(caller, to)
        if amount <= 0:
            raise InvalidAmount(amount)
        token_id = self._next_token_id()
        self._mint(caller, to, token_id, amount, uri)
        return token_id

    @transaction
    def mint_batch(
        self, caller: str, to: str, amounts: list[int], uris: list[str]
    ) -> list[int]:
        self._check_mint(caller, to)
        token_ids = self._mint_many(caller, to, amounts, uris)
        self.emit(
            "MintedBatch", token_ids=token_ids, amounts=amounts, uris=uris, to=to
        )
        return token_ids

    @transaction
    def mint_with_royalties(
        self, caller: str, to: str, amount: int, uri: str, royalty_bps: int
    ) -> int:
        self._check_mint(caller, to)
        if amount <= 0:
            raise InvalidAmount(amount)
        receiver = self._check_royalty(royalty_bps)
        token_id = self._next_token_id()
        self._mint(caller, to, token_id, amount, uri)
        self._set_token_royalty(token_id, receiver, royalty_bps)
        return token_id

    @transaction
    def mint_batch_with_royalties(
        self,
        caller: str,
        to: str,
        amounts: list[int],
        uris: list[str],
        royalty_bps: int,
    ) -> list[int]:
        self._check_mint(caller, to)
        receiver = self._check_royalty(royalty_bps)
        token_ids = self._mint_many(caller, to, amounts, uris)
        for token_id in token_ids:
            self._set_token_royalty(token_id, receiver, royalty_bps)
        self.emit(
            "MintedBatch",
            token_ids=token_ids,
            amounts=amounts,
            uris=uris,
            to=to,
            royalty_bps=royalty_bps,
        )
        return token_ids

    @transaction
    def set_uri(self, caller: str, uri: str, token_id: int) -> None:
        self.check_owner_or_admin(caller)
        self._set_token_uri(token_id, uri)
