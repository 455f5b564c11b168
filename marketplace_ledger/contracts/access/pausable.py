from marketplace_ledger.contracts.access.models import PauseState
from marketplace_ledger.utils.contract import transaction, view
from marketplace_ledger.utils.errors import Revert


class Pausable:
    """Emergency stop for contracts whose admins are resolved through an access registry.

    Hosts implement `check_owner_or_admin(caller)`.
    """

    @view
    def paused(self) -> bool:
        state = self.session.get(PauseState, self.address)
        return state is not None and state.paused

    def when_not_paused(self) -> None:
        if self.paused():
            raise Revert("Pausable: paused")

    @transaction
    def set_pause(self, caller: str, paused: bool) -> None:
        self.check_owner_or_admin(caller)
        state = self.session.get(PauseState, self.address)
        if state is None:
            self.store(PauseState(contract_address=self.address, paused=paused))
        else:
            state.paused = paused
        self.emit("Paused" if paused else "Unpaused", account=caller)
