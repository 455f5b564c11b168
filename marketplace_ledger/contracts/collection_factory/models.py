from marketplace_ledger.utils.models.annotated_types import (
    BigIntegerPrimaryKeyType,
    BigIntegerType,
    InsertedAtType,
    IntegerType,
    NullableStringType,
    StringPrimaryKeyType,
    StringType,
)
from marketplace_ledger.utils.models.general_models import Base


class CollectionFactoryState(Base):
    __tablename__ = "collection_factories"

    address: StringPrimaryKeyType
    registry_address: StringType
    template_erc721: StringType
    template_erc1155: StringType
    nft_manager: NullableStringType
    max_collection: BigIntegerType
    max_total_supply: BigIntegerType
    collection_counter: BigIntegerType


class CollectionInfo(Base):
    __tablename__ = "collection_infos"

    factory_address: StringPrimaryKeyType
    collection_id: BigIntegerPrimaryKeyType
    nft_type: IntegerType
    collection_address: StringType
    owner: StringType
    transaction_version: BigIntegerType
    inserted_at: InsertedAtType


class MaxCollectionOfUser(Base):
    __tablename__ = "max_collection_of_users"

    factory_address: StringPrimaryKeyType
    user: StringPrimaryKeyType
    max_collection: BigIntegerType
