from typing import Optional

from marketplace_ledger.contracts.tokens.models import (
    FungibleAllowance,
    FungibleTokenInfo,
)
from marketplace_ledger.utils import balances
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import InvalidAddress, InvalidAmount, Revert
from marketplace_ledger.utils.general_utils import MAX_UINT256, is_zero_address

DECIMALS = 18


class FungibleToken(Contract):
    """Mintable, burnable ERC-20 payment token.

    The whole initial supply is minted to the treasury. An allowance of MAX_UINT256 is
    treated as infinite and is never decreased.
    """

    contract_type = ContractType.FUNGIBLE_TOKEN

    @transaction
    def initialize(
        self, caller: str, name: str, symbol: str, total_supply: int, treasury: str
    ) -> None:
        if is_zero_address(treasury):
            raise InvalidAddress(treasury)
        if total_supply <= 0:
            raise InvalidAmount(total_supply)
        self.store(
            FungibleTokenInfo(
                address=self.address,
                name=name,
                symbol=symbol,
                decimals=DECIMALS,
                total_supply=0,
                owner=caller,
            )
        )
        self._mint(treasury, total_supply)

    def _info(self) -> FungibleTokenInfo:
        return self.session.get(FungibleTokenInfo, self.address)

    def _mint(self, to: str, amount: int) -> None:
        self._info().total_supply += amount
        balances.credit(self.session, self.address, to, amount)
        self.emit("Transfer", sender=None, to=to, amount=amount)

    def _transfer(self, sender: str, to: str, amount: int) -> None:
        if is_zero_address(to):
            raise Revert("ERC20: transfer to the zero address")
        balances.move(
            self.session,
            self.address,
            sender,
            to,
            amount,
            "ERC20: transfer amount exceeds balance",
        )
        self.emit("Transfer", sender=sender, to=to, amount=amount)

    def _allowance(self, owner: str, spender: str) -> Optional[FungibleAllowance]:
        return self.session.get(FungibleAllowance, (self.address, owner, spender))

    @view
    def name(self) -> str:
        return self._info().name

    @view
    def symbol(self) -> str:
        return self._info().symbol

    @view
    def decimals(self) -> int:
        return self._info().decimals

    @view
    def total_supply(self) -> int:
        return self._info().total_supply

    @view
    def owner(self) -> str:
        return self._info().owner

    @view
    def balance_of(self, account: str) -> int:
        return balances.balance_of(self.session, self.address, account)

    @view
    def allowance(self, owner: str, spender: str) -> int:
        allowance = self._allowance(owner, spender)
        return allowance.amount if allowance is not None else 0

    @transaction
    def transfer(self, caller: str, to: str, amount: int) -> bool:
        self._transfer(caller, to, amount)
        return True

    @transaction
    def approve(self, caller: str, spender: str, amount: int) -> bool:
        if is_zero_address(spender):
            raise Revert("ERC20: approve to the zero address")
        if amount < 0:
            raise InvalidAmount(amount)
        allowance = self._allowance(caller, spender)
        if allowance is None:
            self.store(
                FungibleAllowance(
                    token_address=self.address,
                    owner=caller,
                    spender=spender,
                    amount=amount,
                )
            )
        else:
            allowance.amount = amount
        self.emit("Approval", owner=caller, spender=spender, amount=amount)
        return True

    @transaction
    def transfer_from(self, caller: str, sender: str, to: str, amount: int) -> bool:
        if amount < 0:
            raise InvalidAmount(amount)
        allowance = self._allowance(sender, caller)
        current = allowance.amount if allowance is not None else 0
        if current < amount:
            raise Revert("ERC20: insufficient allowance")
        if current != MAX_UINT256 and amount > 0:
            allowance.amount = current - amount
        self._transfer(sender, to, amount)
        return True

    @transaction
    def mint(self, caller: str, to: str, amount: int) -> None:
        if caller != self._info().owner:
            raise Revert("Ownable: caller is not the owner")
        if is_zero_address(to):
            raise InvalidAddress(to)
        if amount <= 0:
            raise InvalidAmount(amount)
        self._mint(to, amount)

    @transaction
    def burn(self, caller: str, amount: int) -> None:
        if amount <= 0:
            raise InvalidAmount(amount)
        balances.debit(
            self.session,
            self.address,
            caller,
            amount,
            "ERC20: burn amount exceeds balance",
        )
        self._info().total_supply -= amount
        self.emit("Transfer", sender=caller, to=None, amount=amount)
