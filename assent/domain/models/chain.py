"""Supported chain registry.

Static metadata for the chains wallet links and prepared transactions
may target. Lookups for unknown chain ids return None; callers decide
whether an unknown chain is acceptable.
"""

from __future__ import annotations

from dataclasses import dataclass

ETHEREUM_MAINNET: int = 1
BASE: int = 8453
BASE_SEPOLIA: int = 84532
STORY_ODYSSEY: int = 1516
POLYGON: int = 137
ARBITRUM_ONE: int = 42161


@dataclass(frozen=True)
class SupportedChain:
    """Metadata for one EVM chain.

    Attributes:
        chain_id: EIP-155 chain id.
        name: Display name.
        rpc_url: Public RPC endpoint handed to wallets.
        explorer_url: Block explorer base URL.
        currency: Native currency symbol.
    """

    chain_id: int
    name: str
    rpc_url: str
    explorer_url: str
    currency: str


SUPPORTED_CHAINS: dict[int, SupportedChain] = {
    chain.chain_id: chain
    for chain in (
        SupportedChain(ETHEREUM_MAINNET, "Ethereum Mainnet", "https://eth.llamarpc.com", "https://etherscan.io", "ETH"),
        SupportedChain(BASE, "Base", "https://mainnet.base.org", "https://basescan.org", "ETH"),
        SupportedChain(BASE_SEPOLIA, "Base Sepolia", "https://sepolia.base.org", "https://sepolia.basescan.org", "ETH"),
        SupportedChain(STORY_ODYSSEY, "Story Odyssey", "https://odyssey.storyrpc.io", "https://explorer.story.foundation", "IP"),
        SupportedChain(POLYGON, "Polygon", "https://polygon-rpc.com", "https://polygonscan.com", "MATIC"),
        SupportedChain(ARBITRUM_ONE, "Arbitrum One", "https://arb1.arbitrum.io/rpc", "https://arbiscan.io", "ETH"),
    )
}


def get_chain(chain_id: int) -> SupportedChain | None:
    """Look up a supported chain by id."""
    return SUPPORTED_CHAINS.get(chain_id)


def chain_name(chain_id: int) -> str:
    """Display name for a chain id, with a generic fallback."""
    chain = get_chain(chain_id)
    return chain.name if chain else f"Chain {chain_id}"
