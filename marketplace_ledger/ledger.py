import logging
import threading
import time
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from marketplace_ledger.utils import balances
from marketplace_ledger.utils.config import LedgerConfig
from marketplace_ledger.utils.contract import Contract
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import CloneFailed, Revert
from marketplace_ledger.utils.general_utils import (
    ZERO_ADDRESS,
    derive_address,
    standardize_address,
)
from marketplace_ledger.utils.metrics import (
    EXECUTED_TRANSACTIONS_COUNTER,
    LATEST_COMMITTED_VERSION,
    REVERTED_TRANSACTIONS_COUNTER,
)
from marketplace_ledger.utils.models.general_models import (
    Base,
    DeployedContract,
    EmittedEvent,
    LedgerState,
)
from marketplace_ledger.utils.session import (
    create_ledger_engine,
    create_session_factory,
)

# Every contract module registers its implementation on import
from marketplace_ledger.contracts.access.admin import Admin  # noqa: F401
from marketplace_ledger.contracts.treasury.treasury import Treasury  # noqa: F401
from marketplace_ledger.contracts.tokens.fungible_token import FungibleToken  # noqa: F401
from marketplace_ledger.contracts.nft.token_mint import (  # noqa: F401
    TokenMintERC721,
    TokenMintERC1155,
)
from marketplace_ledger.contracts.nft.token_collection import (  # noqa: F401
    TokenERC721,
    TokenERC1155,
)
from marketplace_ledger.contracts.collection_factory.collection_factory import (  # noqa: F401
    CollectionFactory,
)
from marketplace_ledger.contracts.nft_manager.nft_manager import NFTManager  # noqa: F401
from marketplace_ledger.contracts.marketplace.marketplace import Marketplace  # noqa: F401
from marketplace_ledger.contracts.marketplace.order_manager import (  # noqa: F401
    OrderManager,
)
from marketplace_ledger.contracts.auctions.english_auction import (  # noqa: F401
    EnglishAuction,
)
from marketplace_ledger.contracts.auctions.dutch_auction import DutchAuction  # noqa: F401
from marketplace_ledger.contracts.auctions.auction_factory import (  # noqa: F401
    AuctionFactory,
)
from marketplace_ledger.contracts.staking.staking_pool import StakingPool  # noqa: F401
from marketplace_ledger.contracts.staking.pool_factory import PoolFactory  # noqa: F401

T = TypeVar("T")
C = TypeVar("C", bound=Contract)


@dataclass
class TransactionContext:
    version: int
    block_timestamp: int
    event_index: int = 0


@dataclass
class LedgerEvent:
    transaction_version: int
    event_index: int
    contract_address: str
    event_type: str
    data: dict
    block_timestamp: int


class Ledger:
    """Executes contract entrypoints as serialized, atomic database transactions.

    Each top-level entrypoint call opens one session and one database transaction. Any
    exception, including a `Revert`, rolls the whole transaction back, so no partial
    state is ever visible. Calls one contract makes into another join the open
    transaction. The block clock only moves through `sleep` / `set_time`.
    """

    def __init__(self, config: Optional[LedgerConfig] = None):
        self.config = config or LedgerConfig()
        self.name = self.config.ledger_name
        self.engine = create_ledger_engine(self.config.db_connection_uri)
        self.Session = create_session_factory(self.engine)

        self._lock = threading.RLock()
        self._session: Optional[Session] = None
        self._transaction: Optional[TransactionContext] = None
        self._contracts: dict[str, Contract] = {}

        self.init_db_tables()
        self._init_state()

    def init_db_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def _init_state(self) -> None:
        with self.Session() as session, session.begin():
            if session.get(LedgerState, self.name) is not None:
                return
            genesis_timestamp = self.config.genesis_timestamp
            if genesis_timestamp is None:
                genesis_timestamp = int(time.time())
            session.add(
                LedgerState(
                    ledger_name=self.name,
                    next_version=0,
                    block_timestamp=genesis_timestamp,
                )
            )
        logging.info(
            "[Ledger] Initialized ledger state",
            extra={"ledger_name": self.name, "block_timestamp": genesis_timestamp},
        )

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("No ledger session is open")
        return self._session

    @property
    def transaction_version(self) -> int:
        if self._transaction is None:
            raise RuntimeError("No ledger transaction is open")
        return self._transaction.version

    # Execution
    def execute(
        self,
        contract: Contract,
        entrypoint: Callable,
        caller: str,
        args: tuple,
        kwargs: dict,
    ) -> Any:
        with self._lock:
            if self._transaction is not None:
                return entrypoint(contract, caller, *args, **kwargs)
            return self._run_transaction(
                contract.contract_type.value,
                entrypoint.__name__,
                lambda: entrypoint(contract, caller, *args, **kwargs),
            )

    def read(self, body: Callable[[], T]) -> T:
        with self._lock:
            if self._session is not None:
                return body()
            with self.Session() as session:
                self._session = session
                try:
                    return body()
                finally:
                    self._session = None

    def _run_transaction(
        self, contract_type: str, entrypoint: str, body: Callable[[], T]
    ) -> T:
        start_time = perf_counter()
        with self.Session() as session:
            try:
                with session.begin():
                    state = session.get(LedgerState, self.name)
                    self._session = session
                    self._transaction = TransactionContext(
                        version=state.next_version,
                        block_timestamp=state.block_timestamp,
                    )
                    result = body()
                    state.next_version += 1
                    version = self._transaction.version
            except Revert as e:
                REVERTED_TRANSACTIONS_COUNTER.labels(
                    contract_type=contract_type, entrypoint=entrypoint
                ).inc()
                logging.warning(
                    "[Ledger] Transaction reverted",
                    extra={
                        "ledger_name": self.name,
                        "contract_type": contract_type,
                        "entrypoint": entrypoint,
                        "reason": e.reason,
                    },
                )
                raise
            finally:
                self._session = None
                self._transaction = None

        EXECUTED_TRANSACTIONS_COUNTER.labels(
            contract_type=contract_type, entrypoint=entrypoint
        ).inc()
        LATEST_COMMITTED_VERSION.labels(ledger_name=self.name).set(version)
        logging.debug(
            "[Ledger] Transaction committed",
            extra={
                "ledger_name": self.name,
                "contract_type": contract_type,
                "entrypoint": entrypoint,
                "transaction_version": version,
                "duration_in_secs": perf_counter() - start_time,
            },
        )
        return result

    # Clock
    def now(self) -> int:
        if self._transaction is not None:
            return self._transaction.block_timestamp
        return self.read(lambda: self.session.get(LedgerState, self.name).block_timestamp)

    def sleep(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("The ledger clock can not move backwards")
        return self.set_time(self.now() + seconds)

    def set_time(self, block_timestamp: int) -> int:
        with self._lock:
            if self._transaction is not None:
                raise RuntimeError("The ledger clock can not move inside a transaction")
            with self.Session() as session, session.begin():
                state = session.get(LedgerState, self.name)
                if block_timestamp < state.block_timestamp:
                    raise ValueError("The ledger clock can not move backwards")
                state.block_timestamp = block_timestamp
        return block_timestamp

    # Events
    def emit(self, contract_address: str, event_type: str, data: dict) -> None:
        if self._transaction is None:
            raise RuntimeError("Events can only be emitted inside a transaction")
        self.session.add(
            EmittedEvent(
                transaction_version=self._transaction.version,
                event_index=self._transaction.event_index,
                contract_address=contract_address,
                event_type=event_type,
                data=data,
                block_timestamp=self._transaction.block_timestamp,
            )
        )
        self._transaction.event_index += 1

    def get_events(
        self,
        event_type: Optional[str] = None,
        contract_address: Optional[str] = None,
        transaction_version: Optional[int] = None,
    ) -> list[LedgerEvent]:
        def load() -> list[LedgerEvent]:
            statement = select(EmittedEvent).order_by(
                EmittedEvent.transaction_version, EmittedEvent.event_index
            )
            if event_type is not None:
                statement = statement.where(EmittedEvent.event_type == event_type)
            if contract_address is not None:
                statement = statement.where(
                    EmittedEvent.contract_address == contract_address
                )
            if transaction_version is not None:
                statement = statement.where(
                    EmittedEvent.transaction_version == transaction_version
                )
            return [
                LedgerEvent(
                    transaction_version=event.transaction_version,
                    event_index=event.event_index,
                    contract_address=event.contract_address,
                    event_type=event.event_type,
                    data=event.data,
                    block_timestamp=event.block_timestamp,
                )
                for event in self.session.scalars(statement)
            ]

        return self.read(load)

    @property
    def last_transaction_version(self) -> Optional[int]:
        next_version = self.read(
            lambda: self.session.get(LedgerState, self.name).next_version
        )
        return next_version - 1 if next_version > 0 else None

    # Accounts and native currency
    def new_account(self, label: str) -> str:
        return derive_address("account", self.name, label)

    def fund(self, account: str, amount: int) -> None:
        """Mints native currency to `account` outside of any contract."""

        def body() -> None:
            balances.credit(self.session, ZERO_ADDRESS, account, amount)

        with self._lock:
            self._run_transaction("ledger", "fund", body)

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        def body() -> None:
            balances.move(
                self.session,
                ZERO_ADDRESS,
                sender,
                to,
                amount,
                "insufficient funds for transfer",
            )

        with self._lock:
            self._run_transaction("ledger", "transfer_native", body)

    def native_balance(self, account: str) -> int:
        return self.read(
            lambda: balances.balance_of(self.session, ZERO_ADDRESS, account)
        )

    # Contracts
    def deploy(self, contract_class: type[C], deployer: str, *args: Any) -> C:
        with self._lock:
            return self._run_transaction(
                contract_class.contract_type.value,
                "deploy",
                lambda: self._deploy(contract_class, deployer, None, args),
            )

    def deploy_template(self, contract_class: type[C], deployer: str) -> C:
        """Registers an uninitialized implementation that factories clone from."""
        with self._lock:
            return self._run_transaction(
                contract_class.contract_type.value,
                "deploy_template",
                lambda: self._register(contract_class, deployer, None),
            )

    def clone(self, template_address: str, deployer: str, *args: Any) -> Contract:
        """Creates a fresh instance sharing the template's behaviour.

        Only callable from inside a transaction, by the factory contract doing the
        cloning; the new instance is initialized with `deployer` as caller.
        """
        if self._transaction is None:
            raise RuntimeError("Clones can only be created inside a transaction")
        template = self.session.get(DeployedContract, template_address)
        if template is None:
            raise CloneFailed(template_address)
        contract_class = Contract.implementations[ContractType(template.contract_type)]
        return self._deploy(contract_class, deployer, template_address, args)

    def _register(
        self,
        contract_class: type[C],
        deployer: str,
        template_address: Optional[str],
    ) -> C:
        nonce = self.session.scalar(
            select(func.count()).select_from(DeployedContract)
        )
        address = derive_address("contract", self.name, deployer, nonce)
        self.session.add(
            DeployedContract(
                address=address,
                contract_type=contract_class.contract_type.value,
                deployer=deployer,
                template_address=template_address,
                deployed_version=self._transaction.version,
            )
        )
        self.session.flush()
        contract = contract_class(self, address)
        self._contracts[address] = contract
        return contract

    def _deploy(
        self,
        contract_class: type[C],
        deployer: str,
        template_address: Optional[str],
        args: tuple,
    ) -> C:
        contract = self._register(contract_class, deployer, template_address)
        contract.initialize(deployer, *args)
        logging.info(
            "[Ledger] Contract deployed",
            extra={
                "contract_type": contract_class.contract_type.value,
                "contract_address": contract.address,
                "deployer": deployer,
                "template_address": template_address,
            },
        )
        return contract

    def _lookup(self, address: str) -> Optional[DeployedContract]:
        return self.read(lambda: self.session.get(DeployedContract, address))

    def is_contract(self, address: Optional[str]) -> bool:
        if address is None:
            return False
        return self._lookup(standardize_address(address)) is not None

    def contract_type_of(self, address: str) -> Optional[ContractType]:
        deployed = self._lookup(standardize_address(address))
        if deployed is None:
            return None
        return ContractType(deployed.contract_type)

    def contract_at(self, address: str) -> Contract:
        address = standardize_address(address)
        deployed = self._lookup(address)
        if deployed is None:
            raise Revert("Address: call to non-contract")
        contract_type = ContractType(deployed.contract_type)
        contract = self._contracts.get(address)
        # A reverted deployment can leave a stale instance behind for a reused address
        if contract is None or contract.contract_type != contract_type:
            contract_class = Contract.implementations[contract_type]
            contract = contract_class(self, address)
            self._contracts[address] = contract
        return contract
