import logging

from marketplace_ledger.contracts.access.admin import AdminControlled, registry_at
from marketplace_ledger.contracts.treasury.models import TreasuryState
from marketplace_ledger.utils import balances
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    InvalidAddress,
    InvalidAmount,
    PaymentTokenIsNotSupported,
)
from marketplace_ledger.utils.general_utils import (
    is_zero_address,
    to_address,
)


class Treasury(AdminControlled, Contract):
    """Sink for platform fees; admins pay its balances out with `distribute`."""

    contract_type = ContractType.TREASURY

    @transaction
    def initialize(self, caller: str, registry: str) -> None:
        registry_at(self, registry)
        self.store(TreasuryState(address=self.address, registry_address=registry))

    def registry_address(self) -> str:
        return self.session.get(TreasuryState, self.address).registry_address

    @view
    def admin(self) -> str:
        return self.registry_address()

    @view
    def balance_of(self, token: str) -> int:
        token = to_address(token)
        if is_zero_address(token):
            return self.native_balance()
        return balances.balance_of(self.session, token, self.address)

    @transaction
    def distribute(self, caller: str, token: str, to: str, amount: int) -> None:
        self.check_owner_or_admin(caller)
        token = to_address(token)
        if not self.admin_contract().is_permitted_payment_token(token):
            raise PaymentTokenIsNotSupported(token)
        if is_zero_address(to):
            raise InvalidAddress(to)
        to = to_address(to)
        if amount <= 0:
            raise InvalidAmount(amount)

        self.send_payment(token, to, amount)
        self.emit("Distributed", token=token, to=to, amount=amount)
        logging.info(
            "[Treasury] Distributed funds",
            extra={
                "treasury_address": self.address,
                "token": token,
                "to": to,
                "amount": amount,
            },
        )
