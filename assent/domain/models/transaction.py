"""Transaction preparation domain models.

Descriptors are handed to an external wallet or relay for signing and
broadcast. Nothing here carries key material.

- TransactionDescriptor: one unsigned call
- TransactionStep / TransactionPlan: ordered multi-step sequences, where
  a later step is only valid once earlier steps confirm on chain
- TypedDataRequest: a typed-data signature request (IP registration)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class TransactionDescriptor:
    """An unsigned transaction for an externally held key.

    Attributes:
        to: Checksummed destination contract address.
        data: 0x-prefixed encoded call payload.
        value: Native value in wei, as a decimal string.
        chain_id: EIP-155 chain id.
        description: Human-readable summary shown to the signer.
        function_name: Contract function being called.
        method: Wallet RPC method the caller should use.
        gas_estimate: Suggested gas limit, as a decimal string.
    """

    to: str
    data: str
    value: str
    chain_id: int
    description: str
    function_name: str
    method: str = "eth_sendTransaction"
    gas_estimate: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "chain_id": self.chain_id,
            "description": self.description,
            "function_name": self.function_name,
            "method": self.method,
        }
        if self.gas_estimate is not None:
            result["gas_estimate"] = self.gas_estimate
        return result


@dataclass(frozen=True)
class TransactionStep:
    """One numbered step of a TransactionPlan (1-based)."""

    step: int
    transaction: TransactionDescriptor


@dataclass(frozen=True)
class TransactionPlan:
    """Ordered transactions that must confirm one after another.

    Attributes:
        steps: Steps in submission order.
        description: Summary of the whole plan.
    """

    steps: tuple[TransactionStep, ...]
    description: str

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("a transaction plan needs at least one step")
        numbers = [s.step for s in self.steps]
        if numbers != list(range(1, len(self.steps) + 1)):
            raise ValueError(f"plan steps must be numbered 1..n in order, got {numbers}")

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "total_steps": self.total_steps,
            "steps": [
                {"step": s.step, **s.transaction.to_dict()} for s in self.steps
            ],
        }


@dataclass(frozen=True)
class TypedDataRequest:
    """A typed-data signature request for the party's wallet.

    Attributes:
        chain_id: EIP-155 chain id.
        chain_name: Display name of the chain.
        rpc_url: RPC endpoint for the chain, if known.
        description: Human-readable summary shown to the signer.
        metadata: Registration metadata to be signed.
        method: Wallet RPC method the caller should use.
        request_type: Kind of request.
    """

    chain_id: int
    chain_name: str
    rpc_url: Optional[str]
    description: str
    metadata: dict[str, Any] = field(hash=False)
    method: str = "wallet_signTypedData_v4"
    request_type: str = "ip_registration"

    def to_dict(self) -> dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "chain": self.chain_name,
            "rpc": self.rpc_url,
            "description": self.description,
            "metadata": dict(self.metadata),
            "method": self.method,
            "type": self.request_type,
        }
