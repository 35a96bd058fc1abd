"""Wallet authentication domain models.

- SIWEChallenge: a rendered, time-bounded sign-in challenge
- WalletLinkRequest: what a party submits to link a wallet
- WalletLink: a verified address bound to a user
- AgreementSigningMessage: the deterministic message a wallet signs
  to attest to an agreement
- AgreementSignatureVerification: result of verifying that attestation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from assent.domain.hashing import to_iso


@dataclass(frozen=True)
class SIWEChallenge:
    """A sign-in challenge the party must sign with its wallet.

    Single-use: this struct does not track consumption; a nonce registry
    (or the caller) must.

    Attributes:
        address: Address the party claims to control.
        chain_id: EIP-155 chain id.
        nonce: Server-issued nonce.
        domain: Domain requesting the sign-in.
        uri: URI of the requesting resource.
        issued_at: Issue time (UTC).
        expires_at: Expiration time (UTC).
        message: Fully rendered text to sign.
    """

    address: str
    chain_id: int
    nonce: str
    domain: str
    uri: str
    issued_at: datetime
    expires_at: datetime
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "chain_id": self.chain_id,
            "nonce": self.nonce,
            "domain": self.domain,
            "uri": self.uri,
            "issued_at": to_iso(self.issued_at),
            "expires_at": to_iso(self.expires_at),
            "message": self.message,
        }


@dataclass(frozen=True)
class WalletLinkRequest:
    """A party's request to link a wallet to its account.

    address, signature and message are all required; chain_id and
    provider fall back to defaults.
    """

    address: Optional[str]
    signature: Optional[str]
    message: Optional[str]
    chain_id: Optional[int] = None
    provider: Optional[str] = None


@dataclass(frozen=True, eq=True)
class WalletLink:
    """A wallet address proven to belong to a user.

    Only ever created after a successful challenge verification, so
    verified is always True.
    """

    link_id: str
    user_id: str
    address: str
    chain_id: int
    chain_name: str
    provider: str
    linked_at: datetime
    verified: bool = True
    primary: bool = False
    last_used: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.verified:
            raise ValueError("wallet links are only created after verification")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.link_id,
            "user_id": self.user_id,
            "address": self.address,
            "chain_id": self.chain_id,
            "chain": self.chain_name,
            "provider": self.provider,
            "linked_at": to_iso(self.linked_at),
            "verified": self.verified,
            "primary": self.primary,
            "last_used": to_iso(self.last_used) if self.last_used else None,
        }


@dataclass(frozen=True)
class AgreementSigningMessage:
    """Deterministic text a wallet signs to attest to an agreement.

    signed_at must be stored alongside the signature; the same message
    can only be rebuilt from the same timestamp.
    """

    agreement_id: str
    content_hash: str
    signed_at: datetime
    message: str = field(repr=False)


@dataclass(frozen=True)
class AgreementSignatureVerification:
    """Successful verification of a wallet agreement signature."""

    signer_address: str
    content_hash: str
    signed_at: datetime
    verified_at: datetime
