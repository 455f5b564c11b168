import logging
from typing import Optional

from marketplace_ledger.contracts.access.admin import AdminControlled, registry_at
from marketplace_ledger.contracts.access.pausable import Pausable
from marketplace_ledger.contracts.nft.nft_enums import NftType, parse_nft_type
from marketplace_ledger.contracts.nft.token_mint import (
    TokenMintERC721,
    TokenMintERC1155,
)
from marketplace_ledger.contracts.nft_manager.models import NFTManagerState
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import InvalidAddress, InvalidAmount, InvalidLength


class NFTManager(Pausable, AdminControlled, Contract):
    """Mints on the two shared tokens for the calling account.

    The manager must itself be an admin of the access registry so the shared tokens
    accept its mints.
    """

    contract_type = ContractType.NFT_MANAGER

    @transaction
    def initialize(
        self,
        caller: str,
        token_mint_erc721: str,
        token_mint_erc1155: str,
        registry: str,
    ) -> None:
        registry_at(self, registry)
        if (
            self.ledger.contract_type_of(token_mint_erc721)
            != ContractType.TOKEN_MINT_ERC721
        ):
            raise InvalidAddress(token_mint_erc721)
        if (
            self.ledger.contract_type_of(token_mint_erc1155)
            != ContractType.TOKEN_MINT_ERC1155
        ):
            raise InvalidAddress(token_mint_erc1155)
        self.store(
            NFTManagerState(
                address=self.address,
                registry_address=registry,
                token_mint_erc721=token_mint_erc721,
                token_mint_erc1155=token_mint_erc1155,
                token_counter=0,
            )
        )

    def _state(self) -> NFTManagerState:
        return self.session.get(NFTManagerState, self.address)

    def registry_address(self) -> str:
        return self._state().registry_address

    def _token_erc721(self) -> TokenMintERC721:
        return self.contract_at(self._state().token_mint_erc721)

    def _token_erc1155(self) -> TokenMintERC1155:
        return self.contract_at(self._state().token_mint_erc1155)

    def _nft_contract(self, nft_type: NftType) -> str:
        state = self._state()
        if nft_type == NftType.ERC721:
            return state.token_mint_erc721
        return state.token_mint_erc1155

    def _check_batch(self, amounts: list[int], uris: list[str]) -> None:
        if len(amounts) == 0 or len(amounts) != len(uris):
            raise InvalidLength(len(amounts), len(uris))
        for amount in amounts:
            if amount <= 0:
                raise InvalidAmount(amount)

    def _record_created(self, count: int) -> None:
        self._state().token_counter += count

    @view
    def get_token_counter(self) -> int:
        return self._state().token_counter

    @view
    def token_mint_addresses(self) -> tuple[str, str]:
        state = self._state()
        return state.token_mint_erc721, state.token_mint_erc1155

    @transaction
    def create_nft(self, caller: str, nft_type: int, amount: int, uri: str) -> int:
        self.when_not_paused()
        self.check_owner_or_admin(caller)
        nft_type = parse_nft_type(nft_type)
        if amount <= 0 or (nft_type == NftType.ERC721 and amount != 1):
            raise InvalidAmount(amount)

        if nft_type == NftType.ERC721:
            token_id = self._token_erc721().mint(self.address, caller, uri)
        else:
            token_id = self._token_erc1155().mint(self.address, caller, amount, uri)
        self._record_created(1)

        nft_contract = self._nft_contract(nft_type)
        self.emit(
            "Created",
            nft_contract=nft_contract,
            nft_type=int(nft_type),
            amount=amount,
            owner=caller,
            token_id=token_id,
        )
        logging.info(
            "[NFTManager] NFT created",
            extra={
                "nft_contract": nft_contract,
                "owner": caller,
                "token_id": token_id,
                "amount": amount,
            },
        )
        return token_id

    def _create_batch(
        self,
        caller: str,
        nft_type: NftType,
        amounts: list[int],
        uris: list[str],
        royalty_bps: Optional[int],
    ) -> list[int]:
        self._check_batch(amounts, uris)
        if nft_type == NftType.ERC721:
            token = self._token_erc721()
            if royalty_bps is None:
                token_ids = token.mint_batch(self.address, caller, uris)
            else:
                token_ids = token.mint_batch_with_royalties(
                    self.address, caller, uris, royalty_bps
                )
        else:
            token = self._token_erc1155()
            if royalty_bps is None:
                token_ids = token.mint_batch(self.address, caller, amounts, uris)
            else:
                token_ids = token.mint_batch_with_royalties(
                    self.address, caller, amounts, uris, royalty_bps
                )
        self._record_created(len(token_ids))
        self.emit(
            "BatchCreated",
            nft_contract=self._nft_contract(nft_type),
            nft_type=int(nft_type),
            owner=caller,
            token_ids=token_ids,
            amounts=amounts,
            uris=uris,
            royalty_bps=royalty_bps,
        )
        return token_ids

    @transaction
    def create_batch_nft(
        self, caller: str, nft_type: int, amounts: list[int], uris: list[str]
    ) -> list[int]:
        self.when_not_paused()
        self.check_owner_or_admin(caller)
        return self._create_batch(
            caller, parse_nft_type(nft_type), amounts, uris, None
        )

    @transaction
    def create_batch_nft_with_royalties(
        self,
        caller: str,
        nft_type: int,
        amounts: list[int],
        uris: list[str],
        royalty_bps: int,
    ) -> list[int]:
        self.when_not_paused()
        self.check_owner_or_admin(caller)
        if royalty_bps <= 0:
            raise InvalidAmount(royalty_bps)
        return self._create_batch(
            caller, parse_nft_type(nft_type), amounts, uris, royalty_bps
        )
