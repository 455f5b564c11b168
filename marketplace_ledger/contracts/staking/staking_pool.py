"""
Fixed-rate staking of a fungible token.

Stakes earn `amount * reward_rate_bps / 10000` per year, accrued per second between the
pool's start and end time. Rewards are paid in the stake token out of the pool's reward
reserve: whatever the pool holds beyond the principal staked in it. The reserve is
funded with plain token transfers to the pool address.
"""

import logging

from marketplace_ledger.contracts.staking.models import StakeInfo, StakingPoolState
from marketplace_ledger.utils.contract import Contract, transaction, view
from marketplace_ledger.utils.contract_type import ContractType
from marketplace_ledger.utils.errors import (
    InvalidAmount,
    InvalidPoolParameters,
    NothingToClaim,
    PoolIsNotActive,
    StakeIsLocked,
)
from marketplace_ledger.utils.general_utils import BPS_DENOMINATOR

SECONDS_PER_YEAR = 365 * 24 * 60 * 60


class StakingPool(Contract):
    contract_type = ContractType.STAKING_POOL

    @transaction
    def initialize(
        self,
        caller: str,
        stake_token: str,
        reward_rate_bps: int,
        start_time: int,
        pool_duration: int,
        lock_duration: int,
    ) -> None:
        if self.ledger.contract_type_of(stake_token) != ContractType.FUNGIBLE_TOKEN:
            raise InvalidPoolParameters(stake_token)
        if (
            reward_rate_bps <= 0
            or pool_duration <= 0
            or not 0 <= lock_duration <= pool_duration
        ):
            raise InvalidPoolParameters(reward_rate_bps, pool_duration, lock_duration)
        self.store(
            StakingPoolState(
                address=self.address,
                factory=caller,
                stake_token=stake_token,
                reward_rate_bps=reward_rate_bps,
                start_time=start_time,
                end_time=start_time + pool_duration,
                lock_duration=lock_duration,
                total_staked=0,
            )
        )

    def _state(self) -> StakingPoolState:
        return self.session.get(StakingPoolState, self.address)

    def _stake(self, account: str) -> StakeInfo:
        return self.session.get(StakeInfo, (self.address, account))

    def _earned(self, state: StakingPoolState, stake: StakeInfo, timestamp: int) -> int:
        accrue_to = min(timestamp, state.end_time)
        elapsed = max(accrue_to - max(stake.last_accrued_at, state.start_time), 0)
        return (
            stake.amount
            * state.reward_rate_bps
            * elapsed
            // (BPS_DENOMINATOR * SECONDS_PER_YEAR)
        )

    def _accrue(self, state: StakingPoolState, stake: StakeInfo) -> None:
        now = self.now()
        stake.pending_reward += self._earned(state, stake, now)
        stake.last_accrued_at = now

    def _reserve(self, state: StakingPoolState) -> int:
        token = self.contract_at(state.stake_token)
        return token.balance_of(self.address) - state.total_staked

    def _pay_reward(self, state: StakingPoolState, stake: StakeInfo) -> int:
        reward = stake.pending_reward
        if reward == 0:
            return 0
        self.require(
            reward <= self._reserve(state), "StakingPool: insufficient reward reserve"
        )
        stake.pending_reward = 0
        self.send_payment(state.stake_token, stake.account, reward)
        return reward

    # Queries
    @view
    def stake_token(self) -> str:
        return self._state().stake_token

    @view
    def reward_rate_bps(self) -> int:
        return self._state().reward_rate_bps

    @view
    def start_time(self) -> int:
        return self._state().start_time

    @view
    def end_time(self) -> int:
        return self._state().end_time

    @view
    def lock_duration(self) -> int:
        return self._state().lock_duration

    @view
    def total_staked(self) -> int:
        return self._state().total_staked

    @view
    def reward_reserve(self) -> int:
        return self._reserve(self._state())

    @view
    def staked_amount(self, account: str) -> int:
        stake = self._stake(account)
        return stake.amount if stake is not None else 0

    @view
    def pending_reward(self, account: str) -> int:
        stake = self._stake(account)
        if stake is None:
            return 0
        return stake.pending_reward + self._earned(self._state(), stake, self.now())

    # Entrypoints
    @transaction
    def stake(self, caller: str, amount: int) -> None:
        state = self._state()
        now = self.now()
        if not state.start_time <= now < state.end_time:
            raise PoolIsNotActive(self.address)
        if amount <= 0:
            raise InvalidAmount(amount)

        stake = self._stake(caller)
        if stake is None:
            stake = self.store(
                StakeInfo(
                    pool_address=self.address,
                    account=caller,
                    amount=0,
                    pending_reward=0,
                    staked_at=now,
                    last_accrued_at=now,
                )
            )
        else:
            self._accrue(state, stake)
        # Topping up restarts the lock for the whole stake
        stake.staked_at = now
        stake.amount += amount
        state.total_staked += amount
        self.collect_payment(state.stake_token, caller, amount)

        self.emit("Staked", account=caller, amount=amount)
        logging.info(
            "[StakingPool] Staked",
            extra={"pool_address": self.address, "account": caller, "amount": amount},
        )

    @transaction
    def claim(self, caller: str) -> int:
        state = self._state()
        stake = self._stake(caller)
        if stake is None:
            raise NothingToClaim(caller)
        self._accrue(state, stake)
        if stake.pending_reward == 0:
            raise NothingToClaim(caller)
        reward = self._pay_reward(state, stake)
        self.emit("Claimed", account=caller, reward=reward)
        return reward

    @transaction
    def unstake(self, caller: str) -> int:
        """Returns the whole stake and pays out any pending reward."""
        state = self._state()
        stake = self._stake(caller)
        if stake is None or stake.amount == 0:
            raise NothingToClaim(caller)
        if self.now() < stake.staked_at + state.lock_duration:
            raise StakeIsLocked(stake.staked_at + state.lock_duration)

        self._accrue(state, stake)
        amount = stake.amount
        stake.amount = 0
        state.total_staked -= amount
        self.send_payment(state.stake_token, caller, amount)
        reward = self._pay_reward(state, stake)

        self.emit("Unstaked", account=caller, amount=amount, reward=reward)
        logging.info(
            "[StakingPool] Unstaked",
            extra={
                "pool_address": self.address,
                "account": caller,
                "amount": amount,
                "reward": reward,
            },
        )
        return amount
