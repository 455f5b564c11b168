from marketplace_ledger.utils.models.annotated_types import (
    StringPrimaryKeyType,
    StringType,
)
from marketplace_ledger.utils.models.general_models import Base


class TreasuryState(Base):
    __tablename__ = "treasuries"

    address: StringPrimaryKeyType
    registry_address: StringType
