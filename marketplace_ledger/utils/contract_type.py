from enum import Enum


class ContractType(Enum):
    ADMIN = "admin"
    TREASURY = "treasury"
    FUNGIBLE_TOKEN = "fungible_token"
    TOKEN_MINT_ERC721 = "token_mint_erc721"
    TOKEN_MINT_ERC1155 = "token_mint_erc1155"
    TOKEN_ERC721 = "token_erc721"
    TOKEN_ERC1155 = "token_erc1155"
    COLLECTION_FACTORY = "collection_factory"
    NFT_MANAGER = "nft_manager"
    MARKETPLACE = "marketplace"
    ORDER_MANAGER = "order_manager"
    ENGLISH_AUCTION = "english_auction"
    DUTCH_AUCTION = "dutch_auction"
    AUCTION_FACTORY = "auction_factory"
    STAKING_POOL = "staking_pool"
    POOL_FACTORY = "pool_factory"
