from sqlalchemy.orm import Session

from marketplace_ledger.utils.errors import InvalidAmount, Revert
from marketplace_ledger.utils.models.general_models import AssetBalance


def balance_of(session: Session, token: str, holder: str) -> int:
    row = session.get(AssetBalance, (token, holder))
    return row.amount if row is not None else 0


def credit(session: Session, token: str, holder: str, amount: int) -> None:
    if amount < 0:
        raise InvalidAmount(amount)
    if amount == 0:
        return
    row = session.get(AssetBalance, (token, holder))
    if row is None:
        session.add(AssetBalance(token_address=token, holder=holder, amount=amount))
        session.flush()
    else:
        row.amount += amount


def debit(session: Session, token: str, holder: str, amount: int, reason: str) -> None:
    if amount < 0:
        raise InvalidAmount(amount)
    if amount == 0:
        return
    row = session.get(AssetBalance, (token, holder))
    if row is None or row.amount < amount:
        raise Revert(reason)
    row.amount -= amount


def move(
    session: Session, token: str, sender: str, recipient: str, amount: int, reason: str
) -> None:
    debit(session, token, sender, amount, reason)
    credit(session, token, recipient, amount)
