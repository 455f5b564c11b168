import logging
from typing import Optional

from marketplace_ledger.contracts.access.models import (
    AccessPermission,
    AccessRegistry,
    PermissionKind,
)
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    CallerIsNotOwnerOrAdmin,
    InvalidAddress,
    InValidAdminContract,
    InvalidWallet,
    Revert,
)
from marketplace_ledger.utils.general_utils import is_zero_address, to_address

NOT_OWNER = "Ownable: caller is not the owner"


class Admin(Contract):
    """Access registry shared by every other contract.

    Holds the single owner, the admin set, the permitted payment tokens (the zero
    address being native currency) and permitted NFT contracts, and the treasury
    address. The owner always counts as an admin.
    """

    contract_type = ContractType.ADMIN

    @transaction
    def initialize(self, caller: str, owner: str) -> None:
        if is_zero_address(owner):
            raise InvalidWallet(owner)
        self.store(AccessRegistry(address=self.address, owner=owner, treasury=None))

    def _registry(self) -> AccessRegistry:
        return self.session.get(AccessRegistry, self.address)

    def _granted(self, kind: PermissionKind, subject: str) -> bool:
        subject = to_address(subject)
        permission = self.session.get(
            AccessPermission, (self.address, kind.value, subject)
        )
        return permission is not None and permission.granted

    def _grant(self, kind: PermissionKind, subject: str, granted: bool) -> None:
        subject = to_address(subject)
        permission = self.session.get(
            AccessPermission, (self.address, kind.value, subject)
        )
        if permission is None:
            self.store(
                AccessPermission(
                    registry_address=self.address,
                    kind=kind.value,
                    subject=subject,
                    granted=granted,
                )
            )
        else:
            permission.granted = granted
        logging.info(
            "[Admin] Permission updated",
            extra={
                "registry_address": self.address,
                "kind": kind.value,
                "subject": subject,
                "granted": granted,
            },
        )

    def _only_owner(self, caller: str) -> None:
        if caller != self._registry().owner:
            raise Revert(NOT_OWNER)

    @view
    def owner(self) -> str:
        return self._registry().owner

    @view
    def treasury(self) -> Optional[str]:
        return self._registry().treasury

    @view
    def is_admin(self, account: str) -> bool:
        return account == self._registry().owner or self._granted(
            PermissionKind.ADMIN, account
        )

    @view
    def check_owner_or_admin(self, account: str) -> None:
        if not self.is_admin(account):
            raise CallerIsNotOwnerOrAdmin(account)

    @view
    def is_permitted_payment_token(self, token: str) -> bool:
        return self._granted(PermissionKind.PAYMENT_TOKEN, token)

    @view
    def is_permitted_nft(self, nft: str) -> bool:
        return self._granted(PermissionKind.NFT, nft)

    @transaction
    def set_admin(self, caller: str, account: str, allow: bool) -> None:
        self._only_owner(caller)
        if is_zero_address(account):
            raise InvalidAddress(account)
        self._grant(PermissionKind.ADMIN, account, allow)
        self.emit("SetAdmin", account=account, allow=allow)

    @transaction
    def set_permitted_payment_token(self, caller: str, token: str, allow: bool) -> None:
        self.check_owner_or_admin(caller)
        token = to_address(token)
        self._grant(PermissionKind.PAYMENT_TOKEN, token, allow)
        self.emit("SetPaymentToken", token=token, allow=allow)

    @transaction
    def set_permitted_nft(self, caller: str, nft: str, allow: bool) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(nft):
            raise InvalidAddress(nft)
        nft = to_address(nft)
        self._grant(PermissionKind.NFT, nft, allow)
        self.emit("SetPermittedNFT", nft=nft, allow=allow)

    @transaction
    def set_treasury(self, caller: str, treasury: str) -> None:
        self._only_owner(caller)
        if is_zero_address(treasury):
            raise InvalidAddress(treasury)
        treasury = to_address(treasury)
        self._registry().treasury = treasury
        self.emit("SetTreasury", treasury=treasury)

    @transaction
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._only_owner(caller)
        if is_zero_address(new_owner):
            raise Revert("Ownable: new owner is the zero address")
        registry = self._registry()
        previous_owner = registry.owner
        registry.owner = new_owner
        self.emit(
            "OwnershipTransferred", previous_owner=previous_owner, new_owner=new_owner
        )


def registry_at(contract: Contract, address: str) -> Admin:
    """Resolves an access registry address, rejecting anything that is not one."""
    if is_zero_address(address) or (
        contract.ledger.contract_type_of(address) != ContractType.ADMIN
    ):
        raise InValidAdminContract(address)
    return contract.contract_at(address)


class AdminControlled:
    """Mixin for contracts whose privileged calls are gated by an access registry.

    Hosts implement `registry_address()`.
    """

    def registry_address(self) -> str:
        raise NotImplementedError

    def admin_contract(self) -> Admin:
        return self.contract_at(self.registry_address())

    def check_owner_or_admin(self, caller: str) -> None:
        self.admin_contract().check_owner_or_admin(caller)

    def treasury_address(self) -> str:
        treasury = self.admin_contract().treasury()
        if is_zero_address(treasury):
            raise InvalidAddress(treasury)
        return treasury
