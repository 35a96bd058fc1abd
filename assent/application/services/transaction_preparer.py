"""TransactionPreparer: unsigned transactions for externally held keys.

Builds call payloads for escrow funding and typed-data requests for IP
registration. Nothing here signs, holds keys or talks to a node; the
descriptors are handed to the party's wallet or a relay.

Call data is a 4-byte function selector followed by the ABI-encoded
arguments (eth_utils for selectors and addresses, eth_abi for encoding).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from eth_abi import encode
from eth_abi.exceptions import EncodingError
from eth_utils import function_abi_to_4byte_selector, is_address, to_checksum_address, to_wei
from eth_utils.abi import collapse_if_tuple

from assent.application.services.base import LoggingMixin
from assent.domain.errors.validation import InputInvalidError
from assent.domain.models.chain import BASE, STORY_ODYSSEY, chain_name, get_chain
from assent.domain.models.transaction import (
    TransactionDescriptor,
    TransactionPlan,
    TransactionStep,
    TypedDataRequest,
)

NATIVE_CURRENCY = "ETH"
NATIVE_DECIMALS = 18
DEFAULT_GAS_ESTIMATE = "100000"

ESCROW_ABI: tuple[dict[str, Any], ...] = (
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [{"name": "_id", "type": "uint256"}],
        "outputs": [],
    },
    {
        "name": "depositToken",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_id", "type": "uint256"},
            {"name": "_token", "type": "address"},
            {"name": "_amount", "type": "uint256"},
        ],
        "outputs": [],
    },
)

ERC20_APPROVE_ABI: tuple[dict[str, Any], ...] = (
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
)


def parse_units(amount: Any, decimals: int) -> int:
    """Convert a human amount to integer base units.

    Raises:
        InputInvalidError: If the amount is not a positive number or has
            more fractional digits than the token supports.
    """
    if decimals < 0:
        raise InputInvalidError(f"Token decimals must be non-negative, got {decimals}.", field="decimals")
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise InputInvalidError(f"Invalid amount: {amount!r}.", field="amount") from exc
    if not value.is_finite() or value <= 0:
        raise InputInvalidError(f"Amount must be a positive number, got {amount!r}.", field="amount")
    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise InputInvalidError(
            f"Amount {amount} has more than {decimals} decimal places.", field="amount"
        )
    return int(scaled)


def _checksum(address: str, field: str) -> str:
    if not address or not is_address(address):
        raise InputInvalidError(f"Invalid {field.replace('_', ' ')}: {address!r}.", field=field)
    return to_checksum_address(address)


def encode_call(
    abi: Sequence[Mapping[str, Any]], function_name: str, args: Sequence[Any]
) -> str:
    """Encode a contract call as 0x-prefixed call data.

    Args:
        abi: Contract ABI (JSON entries).
        function_name: Function to call.
        args: Positional arguments, already in ABI-native form.

    Raises:
        InputInvalidError: If the function is not in the ABI, no overload
            takes len(args) arguments, or an argument does not encode.
    """
    candidates = [
        entry
        for entry in abi
        if entry.get("type", "function") == "function" and entry.get("name") == function_name
    ]
    if not candidates:
        raise InputInvalidError(
            f"Function {function_name!r} is not in the contract ABI.", field="function_name"
        )
    matching = [entry for entry in candidates if len(entry.get("inputs", ())) == len(args)]
    if not matching:
        raise InputInvalidError(
            f"Function {function_name!r} does not take {len(args)} arguments.", field="args"
        )

    function_abi = dict(matching[0])
    types = [collapse_if_tuple(dict(item)) for item in function_abi.get("inputs", ())]
    try:
        encoded_args = encode(types, list(args))
    except (EncodingError, TypeError, ValueError, OverflowError) as exc:
        raise InputInvalidError(
            f"Arguments do not match {function_name}({', '.join(types)}): {exc}", field="args"
        ) from exc
    selector = function_abi_to_4byte_selector(function_abi)
    return "0x" + (selector + encoded_args).hex()


class TransactionPreparer(LoggingMixin):
    """Prepares escrow and registration requests for a party's wallet."""

    def __init__(
        self,
        default_chain_id: int = BASE,
        gas_estimate: str = DEFAULT_GAS_ESTIMATE,
    ) -> None:
        self._default_chain_id = default_chain_id
        self._gas_estimate = gas_estimate
        self._init_logger(component="transactions")

    def encode_call(
        self, abi: Sequence[Mapping[str, Any]], function_name: str, args: Sequence[Any]
    ) -> str:
        """See module-level encode_call()."""
        return encode_call(abi, function_name, args)

    def prepare_escrow_deposit(
        self,
        escrow_address: str,
        escrow_id: int,
        amount: Any,
        currency: str,
        abi: Optional[Sequence[Mapping[str, Any]]] = None,
        chain_id: Optional[int] = None,
    ) -> TransactionDescriptor:
        """Prepare a deposit(escrowId) call.

        The native value is the amount in wei when currency is ETH, else "0".

        Raises:
            InputInvalidError: For an invalid address, escrow id or amount.
        """
        contract = _checksum(escrow_address, "escrow_address")
        escrow_id = self._escrow_id(escrow_id)
        is_native = currency.upper() == NATIVE_CURRENCY
        # Validates amount for every currency, not only the native one
        parse_units(amount, NATIVE_DECIMALS)
        value = str(to_wei(Decimal(str(amount)), "ether")) if is_native else "0"
        target_chain = chain_id or self._default_chain_id

        descriptor = TransactionDescriptor(
            to=contract,
            data=encode_call(abi or ESCROW_ABI, "deposit", [escrow_id]),
            value=value,
            chain_id=target_chain,
            description=f"Deposit {amount} {currency} into escrow #{escrow_id}",
            function_name="deposit",
            gas_estimate=self._gas_estimate,
        )
        self._log_operation("prepare_escrow_deposit", escrow_id=escrow_id).info(
            "escrow_deposit_prepared",
            contract=contract,
            currency=currency,
            chain=chain_name(target_chain),
        )
        return descriptor

    def prepare_token_escrow_deposit(
        self,
        escrow_address: str,
        token_address: str,
        escrow_id: int,
        amount: Any,
        decimals: int,
        abi: Optional[Sequence[Mapping[str, Any]]] = None,
        chain_id: Optional[int] = None,
    ) -> TransactionPlan:
        """Prepare ERC-20 approve followed by depositToken(escrowId, token, amount).

        Step 2 only succeeds on chain after step 1 has confirmed.

        Raises:
            InputInvalidError: For invalid addresses, escrow id or amount.
        """
        contract = _checksum(escrow_address, "escrow_address")
        token = _checksum(token_address, "token_address")
        escrow_id = self._escrow_id(escrow_id)
        base_units = parse_units(amount, decimals)
        target_chain = chain_id or self._default_chain_id

        approve = TransactionDescriptor(
            to=token,
            data=encode_call(ERC20_APPROVE_ABI, "approve", [contract, base_units]),
            value="0",
            chain_id=target_chain,
            description=f"Approve {amount} tokens for escrow contract",
            function_name="approve",
            gas_estimate=self._gas_estimate,
        )
        deposit = TransactionDescriptor(
            to=contract,
            data=encode_call(abi or ESCROW_ABI, "depositToken", [escrow_id, token, base_units]),
            value="0",
            chain_id=target_chain,
            description=f"Deposit {amount} tokens into escrow #{escrow_id}",
            function_name="depositToken",
            gas_estimate=self._gas_estimate,
        )
        plan = TransactionPlan(
            steps=(TransactionStep(1, approve), TransactionStep(2, deposit)),
            description=f"Fund escrow #{escrow_id} with {amount} tokens",
        )
        self._log_operation("prepare_token_escrow_deposit", escrow_id=escrow_id).info(
            "token_escrow_deposit_prepared",
            contract=contract,
            token=token,
            base_units=str(base_units),
        )
        return plan

    def prepare_ip_registration(self, metadata: Mapping[str, Any]) -> TypedDataRequest:
        """Prepare a typed-data request registering an IP asset on Story.

        Raises:
            InputInvalidError: If metadata has no name.
        """
        name = metadata.get("name") if metadata else None
        if not name or not str(name).strip():
            raise InputInvalidError("IP registration metadata needs a name.", field="name")
        chain = get_chain(STORY_ODYSSEY)
        return TypedDataRequest(
            chain_id=STORY_ODYSSEY,
            chain_name=chain.name if chain else chain_name(STORY_ODYSSEY),
            rpc_url=chain.rpc_url if chain else None,
            description=f'Register "{name}" as IP Asset on Story Protocol',
            metadata=dict(metadata),
        )

    @staticmethod
    def _escrow_id(escrow_id: Any) -> int:
        if isinstance(escrow_id, bool) or not isinstance(escrow_id, int) or escrow_id < 0:
            raise InputInvalidError(
                f"Escrow id must be a non-negative integer, got {escrow_id!r}.", field="escrow_id"
            )
        return escrow_id
