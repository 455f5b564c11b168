from enum import Enum

from marketplace_ledger.utils.models.annotated_types import (
    BooleanType,
    NullableStringType,
    StringPrimaryKeyType,
    StringType,
    UpdatedAtType,
)
from marketplace_ledger.utils.models.general_models import Base


class PermissionKind(Enum):
    ADMIN = "admin"
    PAYMENT_TOKEN = "payment_token"
    NFT = "nft"


class AccessRegistry(Base):
    __tablename__ = "access_registries"

    address: StringPrimaryKeyType
    owner: StringType
    treasury: NullableStringType
    updated_at: UpdatedAtType


class AccessPermission(Base):
    __tablename__ = "access_permissions"

    registry_address: StringPrimaryKeyType
    kind: StringPrimaryKeyType
    subject: StringPrimaryKeyType
    granted: BooleanType
    updated_at: UpdatedAtType


class PauseState(Base):
    __tablename__ = "pause_states"

    contract_address: StringPrimaryKeyType
    paused: BooleanType
