import logging
from typing import Optional

from sqlalchemy import select

from marketplace_ledger.contracts.access.admin import AdminControlled, registry_at
from marketplace_ledger.contracts.access.pausable import Pausable
from marketplace_ledger.contracts.staking.models import PoolFactoryState, PoolRecord
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import InvalidAddress
from marketplace_ledger.utils.general_utils import is_zero_address


class PoolFactory(Pausable, AdminControlled, Contract):
    contract_type = ContractType.POOL_FACTORY

    @transaction
    def initialize(self, caller: str, pool_template: str, registry: str) -> None:
        registry_at(self, registry)
        if is_zero_address(pool_template):
            raise InvalidAddress(pool_template)
        self.store(
            PoolFactoryState(
                address=self.address,
                registry_address=registry,
                pool_template=pool_template,
                pool_counter=0,
            )
        )

    def _state(self) -> PoolFactoryState:
        return self.session.get(PoolFactoryState, self.address)

    def registry_address(self) -> str:
        return self._state().registry_address

    @view
    def pool_template(self) -> str:
        return self._state().pool_template

    @view
    def get_pool_length(self) -> int:
        return self._state().pool_counter

    @view
    def get_pool(self, pool_id: int) -> Optional[PoolRecord]:
        return self.session.get(PoolRecord, (self.address, pool_id))

    @view
    def get_all_pools(self) -> list[str]:
        return list(
            self.session.scalars(
                select(PoolRecord.pool_address)
                .where(PoolRecord.factory_address == self.address)
                .order_by(PoolRecord.pool_id)
            )
        )

    @transaction
    def set_pool_template(self, caller: str, pool_template: str) -> None:
        self.check_owner_or_admin(caller)
        if is_zero_address(pool_template):
            raise InvalidAddress(pool_template)
        self._state().pool_template = pool_template

    @transaction
    def create(
        self,
        caller: str,
        stake_token: str,
        reward_rate_bps: int,
        start_time: int,
        pool_duration: int,
        lock_duration: int,
    ) -> str:
        self.when_not_paused()
        self.check_owner_or_admin(caller)
        state = self._state()
        pool = self.ledger.clone(
            state.pool_template,
            self.address,
            stake_token,
            reward_rate_bps,
            start_time,
            pool_duration,
            lock_duration,
        )

        state.pool_counter += 1
        pool_id = state.pool_counter
        self.store(
            PoolRecord(
                factory_address=self.address,
                pool_id=pool_id,
                pool_address=pool.address,
                stake_token=stake_token,
                creator=caller,
                transaction_version=self.transaction_version(),
            )
        )
        self.emit(
            "PoolCreated",
            pool_id=pool_id,
            pool_address=pool.address,
            stake_token=stake_token,
            reward_rate_bps=reward_rate_bps,
            start_time=start_time,
            pool_duration=pool_duration,
            lock_duration=lock_duration,
        )
        logging.info(
            "[PoolFactory] Pool created",
            extra={
                "factory_address": self.address,
                "pool_id": pool_id,
                "pool_address": pool.address,
            },
        )
        return pool.address
