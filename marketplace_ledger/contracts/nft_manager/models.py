from marketplace_ledger.utils.models.annotated_types import (
    BigIntegerType,
    StringPrimaryKeyType,
    StringType,
)
from marketplace_ledger.utils.models.general_models import Base


class NFTManagerState(Base):
    __tablename__ = "nft_managers"

    address: StringPrimaryKeyType
    registry_address: StringType
    token_mint_erc721: StringType
    token_mint_erc1155: StringType
    # Token ids created so far through both shared tokens
    token_counter: BigIntegerType
