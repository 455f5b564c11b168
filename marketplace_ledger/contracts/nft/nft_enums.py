from enum import IntEnum

from marketplace_ledger.utils.errors import InvalidNftType


class NftType(IntEnum):
    ERC721 = 0
    ERC1155 = 1


def parse_nft_type(value: int) -> NftType:
    try:
        return NftType(value)
    except ValueError:
        raise InvalidNftType(value) from None


# ERC-165 interface ids
INTERFACE_ID_ERC165 = "0x01ffc9a7"
INTERFACE_ID_ERC721 = "0x80ac58cd"
INTERFACE_ID_ERC721_METADATA = "0x5b5e139f"
INTERFACE_ID_ERC1155 = "0xd9b67a26"
INTERFACE_ID_ERC1155_METADATA_URI = "0x0e89341c"
INTERFACE_ID_ERC2981 = "0x2a55205a"
