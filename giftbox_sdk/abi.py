"""
Contract ABIs used by the SDK.

Only the fragments the SDK calls are included.
"""

_GIFT_TUPLE = [
    {"name": "sender", "type": "address"},
    {"name": "recipient", "type": "address"},
    {"name": "unlockTimestamp", "type": "uint256"},
    {"name": "claimed", "type": "bool"},
    {"name": "assetType", "type": "uint8"},
    {"name": "token", "type": "address"},
    {"name": "tokenId", "type": "uint256"},
    {"name": "amount", "type": "uint256"},
    {"name": "recipientENS", "type": "string"},
    {"name": "message", "type": "string"},
]

GIFTBOX_ABI = [
    {
        "anonymous": False,
        "name": "GiftCreated",
        "type": "event",
        "inputs": [
            {"name": "id", "type": "uint256", "indexed": True},
            {"name": "sender", "type": "address", "indexed": True},
            {"name": "recipient", "type": "address", "indexed": True},
            {"name": "unlockTimestamp", "type": "uint256", "indexed": False},
            {"name": "assetType", "type": "uint8", "indexed": False},
            {"name": "token", "type": "address", "indexed": False},
            {"name": "tokenId", "type": "uint256", "indexed": False},
            {"name": "amount", "type": "uint256", "indexed": False},
            {"name": "recipientENS", "type": "string", "indexed": False},
        ],
    },
    {
        "anonymous": False,
        "name": "GiftClaimed",
        "type": "event",
        "inputs": [
            {"name": "id", "type": "uint256", "indexed": True},
            {"name": "recipient", "type": "address", "indexed": True},
        ],
    },
    {
        "name": "createGiftETH",
        "type": "function",
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "unlockTimestamp", "type": "uint256"},
            {"name": "recipientENS", "type": "string"},
            {"name": "message", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "payable",
    },
    {
        "name": "createGiftERC20",
        "type": "function",
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "unlockTimestamp", "type": "uint256"},
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "recipientENS", "type": "string"},
            {"name": "message", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    {
        "name": "createGiftERC721",
        "type": "function",
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "unlockTimestamp", "type": "uint256"},
            {"name": "token", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
            {"name": "recipientENS", "type": "string"},
            {"name": "message", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    {
        "name": "createGiftERC1155",
        "type": "function",
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "unlockTimestamp", "type": "uint256"},
            {"name": "token", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
            {"name": "amount", "type": "uint256"},
            {"name": "recipientENS", "type": "string"},
            {"name": "message", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    {
        "name": "claimGift",
        "type": "function",
        "inputs": [{"name": "id", "type": "uint256"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "name": "getSentGifts",
        "type": "function",
        "inputs": [{"name": "sender", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256[]"}],
        "stateMutability": "view",
    },
    {
        "name": "getReceivedGifts",
        "type": "function",
        "inputs": [{"name": "recipient", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256[]"}],
        "stateMutability": "view",
    },
    {
        "name": "getGiftsByENS",
        "type": "function",
        "inputs": [{"name": "ensName", "type": "string"}],
        "outputs": [{"name": "", "type": "uint256[]"}],
        "stateMutability": "view",
    },
    {
        "name": "getGiftDetails",
        "type": "function",
        "inputs": [{"name": "id", "type": "uint256"}],
        "outputs": [{"name": "", "type": "tuple", "components": _GIFT_TUPLE}],
        "stateMutability": "view",
    },
    {
        "name": "getMultipleGifts",
        "type": "function",
        "inputs": [{"name": "ids", "type": "uint256[]"}],
        "outputs": [{"name": "", "type": "tuple[]", "components": _GIFT_TUPLE}],
        "stateMutability": "view",
    },
]

# Asset type codes stored in the contract's gift tuple
ASSET_TYPE_NATIVE = 0
ASSET_TYPE_FUNGIBLE = 1
ASSET_TYPE_NFT = 2
ASSET_TYPE_MULTI_NFT = 3

ERC20_ABI = [
    {
        "name": "allowance",
        "type": "function",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "name": "approve",
        "type": "function",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "name": "decimals",
        "type": "function",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
    },
]

# ERC-721 and ERC-1155 share the collection-wide operator approval interface
APPROVAL_FOR_ALL_ABI = [
    {
        "name": "isApprovedForAll",
        "type": "function",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "operator", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
    },
    {
        "name": "setApprovalForAll",
        "type": "function",
        "inputs": [
            {"name": "operator", "type": "address"},
            {"name": "approved", "type": "bool"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]
