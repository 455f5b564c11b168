import functools
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Optional

from sqlalchemy.orm import Session

from marketplace_ledger.utils import balances
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import InvalidAmount, Revert
from marketplace_ledger.utils.general_utils import (
    ZERO_ADDRESS,
    is_zero_address,
    standardize_address,
)

if TYPE_CHECKING:
    from marketplace_ledger.ledger import Ledger


def transaction(func: Callable) -> Callable:
    """Marks a state-changing entrypoint.

    The wrapped method takes the calling account as its first argument. Called from
    outside the ledger it runs as one atomic transaction; called from inside another
    entrypoint it joins the transaction already in progress.
    """

    @functools.wraps(func)
    def wrapper(self: "Contract", caller: str, *args, **kwargs):
        return self.ledger.execute(
            self, func, standardize_address(caller), args, kwargs
        )

    return wrapper


def view(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self: "Contract", *args, **kwargs):
        return self.ledger.read(lambda: func(self, *args, **kwargs))

    return wrapper


class Contract(ABC):
    contract_type: ClassVar[ContractType]
    # Whether safe NFT transfers to this contract are accepted
    accepts_nft: ClassVar[bool] = False

    implementations: ClassVar[dict[ContractType, type["Contract"]]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        contract_type = cls.__dict__.get("contract_type")
        if contract_type is not None:
            Contract.implementations[contract_type] = cls

    def __init__(self, ledger: "Ledger", address: str):
        self.ledger = ledger
        self.address = address

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"

    # Called once, inside the deploying transaction
    @abstractmethod
    def initialize(self, caller: str, *args: Any) -> None:
        pass

    @property
    def session(self) -> Session:
        return self.ledger.session

    def now(self) -> int:
        return self.ledger.now()

    def transaction_version(self) -> int:
        return self.ledger.transaction_version

    def emit(self, event_type: str, **data: Any) -> None:
        self.ledger.emit(self.address, event_type, data)

    def store(self, row: Any) -> Any:
        self.session.add(row)
        self.session.flush()
        return row

    def contract_at(self, address: str) -> "Contract":
        return self.ledger.contract_at(address)

    # Native currency and fungible payments. The zero address stands for native.
    def native_balance(self) -> int:
        return balances.balance_of(self.session, ZERO_ADDRESS, self.address)

    def receive_native(self, payer: str, value: int) -> None:
        balances.move(
            self.session,
            ZERO_ADDRESS,
            payer,
            self.address,
            value,
            "insufficient funds for transfer",
        )

    def send_native(self, to: str, amount: int) -> None:
        balances.move(
            self.session, ZERO_ADDRESS, self.address, to, amount, "transfer native fail"
        )

    def collect_payment(
        self, payment_token: Optional[str], payer: str, amount: int, value: int = 0
    ) -> None:
        """Pulls `amount` from `payer` into this contract.

        Native payments must attach exactly `amount` as `value`; token payments use the
        allowance the payer granted this contract and attach no value.
        """
        if amount < 0:
            raise InvalidAmount(amount)
        if is_zero_address(payment_token):
            if value != amount:
                raise InvalidAmount(value)
            self.receive_native(payer, value)
            return
        if value != 0:
            raise InvalidAmount(value)
        if amount == 0:
            return
        self.contract_at(payment_token).transfer_from(
            self.address, payer, self.address, amount
        )

    def send_payment(self, payment_token: Optional[str], to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(amount)
        if amount == 0:
            return
        if is_zero_address(payment_token):
            self.send_native(to, amount)
        else:
            self.contract_at(payment_token).transfer(self.address, to, amount)

    @staticmethod
    def require(condition: bool, reason: str) -> None:
        if not condition:
            raise Revert(reason)
