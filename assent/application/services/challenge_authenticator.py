"""ChallengeAuthenticator: wallet sign-in challenges and signature recovery.

Proving control of an address works by signing a server-issued,
time-bounded message (Sign-In with Ethereum style). Signatures are
EIP-191 personal-message signatures; the signer is recovered with
eth_account and compared case-insensitively to the claimed address.

The same recovery backs wallet signatures over agreements: the signing
message is rebuilt deterministically from agreement fields and the
timestamp pinned when the party signed.

Usage:
    auth = ChallengeAuthenticator(time_authority, domain="app.example.com",
                                  uri="https://app.example.com")
    challenge = auth.issue_challenge("0xAb5801a7D398351b8bE11C439e05C5B3259aeC9B")
    # ... wallet signs challenge.message ...
    address = auth.verify(challenge.message, signature)
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address, to_checksum_address
from uuid6 import uuid7

from assent.application.ports.nonce_registry import NonceRegistryProtocol
from assent.application.ports.time_authority import TimeAuthorityProtocol
from assent.application.services.base import LoggingMixin
from assent.domain.errors.identity import ChallengeExpiredError, ExpiredError
from assent.domain.errors.validation import InputInvalidError
from assent.domain.errors.wallet import AddressMismatchError, VerificationFailedError
from assent.domain.hashing import parse_iso, to_iso
from assent.domain.models.agreement import Agreement
from assent.domain.models.chain import BASE, chain_name
from assent.domain.models.wallet import (
    AgreementSignatureVerification,
    AgreementSigningMessage,
    SIWEChallenge,
    WalletLink,
    WalletLinkRequest,
)

CHALLENGE_HEADER_SUFFIX = " wants you to sign in with your Ethereum account:"
NONCE_PREFIX = "Nonce: "
EXPIRATION_PREFIX = "Expiration Time: "
DEFAULT_PROVIDER = "injected"


def _truncate_ms(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def render_challenge_message(
    domain: str,
    address: str,
    statement: str,
    uri: str,
    chain_id: int,
    nonce: str,
    issued_at: datetime,
    expires_at: datetime,
) -> str:
    """Render the human-readable sign-in message a wallet signs."""
    return (
        f"{domain}{CHALLENGE_HEADER_SUFFIX}\n"
        f"{address}\n"
        f"\n"
        f"{statement}\n"
        f"\n"
        f"URI: {uri}\n"
        f"Version: 1\n"
        f"Chain ID: {chain_id}\n"
        f"{NONCE_PREFIX}{nonce}\n"
        f"Issued At: {to_iso(issued_at)}\n"
        f"{EXPIRATION_PREFIX}{to_iso(expires_at)}"
    )


def render_agreement_message(
    agreement: Agreement, signed_at: datetime, platform_name: str
) -> str:
    """Render the deterministic message a wallet signs to attest to an agreement."""
    content_hash = agreement.content_hash
    if not content_hash.startswith("0x"):
        content_hash = f"0x{content_hash}"
    return (
        f"I hereby sign this agreement on {platform_name}.\n"
        f"\n"
        f"Agreement: {agreement.title}\n"
        f"ID: {agreement.agreement_id}\n"
        f"Content Hash: {content_hash}\n"
        f"Type: {agreement.agreement_type}\n"
        f"Jurisdiction: {agreement.jurisdiction or 'Not specified'}\n"
        f"Timestamp: {to_iso(signed_at)}\n"
        f"Platform: {platform_name}"
    )


def recover_signer(message: str, signature: str) -> str:
    """Recover the checksummed address that signed a personal message.

    Raises:
        VerificationFailedError: If the signature is malformed or recovery fails.
    """
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as exc:  # eth_account raises several unrelated error types
        raise VerificationFailedError(
            f"Signature verification failed: {exc}", reason=exc
        ) from exc
    return to_checksum_address(recovered)


class ChallengeAuthenticator(LoggingMixin):
    """Issues sign-in challenges and verifies wallet signatures.

    When a nonce registry is given, every issued nonce is registered and
    verify() consumes it, so each challenge can be redeemed once.
    """

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        domain: str = "localhost",
        uri: str = "https://localhost",
        statement: str = "Sign in to Assent",
        platform_name: str = "Assent",
        challenge_ttl_minutes: int = 10,
        default_chain_id: int = BASE,
        nonce_registry: Optional[NonceRegistryProtocol] = None,
    ) -> None:
        """Initialize the authenticator.

        Args:
            time_authority: Clock for issue, expiry and verification times.
            domain: Default domain for challenges.
            uri: Default URI for challenges.
            statement: Statement line of challenges.
            platform_name: Platform named in agreement signing messages.
            challenge_ttl_minutes: Lifetime of a challenge.
            default_chain_id: Chain used when the caller names none.
            nonce_registry: Single-use tracking for nonces, if any.
        """
        self._time = time_authority
        self._domain = domain
        self._uri = uri
        self._statement = statement
        self._platform_name = platform_name
        self._ttl = timedelta(minutes=challenge_ttl_minutes)
        self._default_chain_id = default_chain_id
        self._nonces = nonce_registry
        self._init_logger(component="wallet")

    def issue_challenge(
        self,
        address: str,
        chain_id: Optional[int] = None,
        nonce: Optional[str] = None,
        domain: Optional[str] = None,
        uri: Optional[str] = None,
    ) -> SIWEChallenge:
        """Issue a sign-in challenge for an address.

        Raises:
            InputInvalidError: If the address is malformed or the nonce was
                already issued.
        """
        if not address or not is_address(address):
            raise InputInvalidError(f"Invalid wallet address: {address!r}.", field="address")

        checksummed = to_checksum_address(address)
        challenge_nonce = nonce or secrets.token_hex(16)
        challenge_chain = chain_id or self._default_chain_id
        challenge_domain = domain or self._domain
        challenge_uri = uri or self._uri
        issued_at, expires_at = (_truncate_ms(t) for t in self._time.expiry(self._ttl))

        if self._nonces is not None:
            try:
                self._nonces.register(challenge_nonce, expires_at)
            except ValueError as exc:
                raise InputInvalidError(
                    "This challenge nonce was already issued.", field="nonce"
                ) from exc

        challenge = SIWEChallenge(
            address=checksummed,
            chain_id=challenge_chain,
            nonce=challenge_nonce,
            domain=challenge_domain,
            uri=challenge_uri,
            issued_at=issued_at,
            expires_at=expires_at,
            message=render_challenge_message(
                domain=challenge_domain,
                address=checksummed,
                statement=self._statement,
                uri=challenge_uri,
                chain_id=challenge_chain,
                nonce=challenge_nonce,
                issued_at=issued_at,
                expires_at=expires_at,
            ),
        )
        self._log_operation("issue_challenge", address=checksummed).info(
            "challenge_issued",
            chain_id=challenge_chain,
            expires_at=to_iso(expires_at),
        )
        return challenge

    def verify(self, message: str, signature: str) -> str:
        """Verify a signed challenge and return the signer's address.

        Raises:
            VerificationFailedError: If the message or signature is malformed,
                recovery fails, or the nonce is unknown or already used.
            AddressMismatchError: If the signer is not the address in the message.
            ChallengeExpiredError: If the challenge's expiration time passed.
        """
        if not message or not signature:
            raise VerificationFailedError("Both a message and a signature are required.")

        log = self._log_operation("verify")
        claimed, nonce, expires_at = self._parse_challenge(message)
        recovered = recover_signer(message, signature)

        if recovered.lower() != claimed.lower():
            log.warning("challenge_address_mismatch", claimed=claimed, recovered=recovered)
            raise AddressMismatchError(claimed, recovered)

        now = self._time.now()
        if expires_at is not None and now > expires_at:
            log.warning("challenge_expired", address=recovered, expires_at=to_iso(expires_at))
            raise ChallengeExpiredError(expires_at)

        if self._nonces is not None:
            if nonce is None or not self._nonces.consume(nonce, now):
                log.warning("challenge_nonce_rejected", address=recovered)
                raise VerificationFailedError(
                    "This challenge is unknown or has already been used. Request a new one."
                )

        log.info("challenge_verified", address=recovered)
        return recovered

    def build_agreement_message(
        self, agreement: Agreement, signed_at: Optional[datetime] = None
    ) -> AgreementSigningMessage:
        """Build the message a party's wallet signs for an agreement.

        Store signed_at with the signature; verification rebuilds the
        message from it.
        """
        pinned = _truncate_ms(signed_at or self._time.now())
        return AgreementSigningMessage(
            agreement_id=agreement.agreement_id,
            content_hash=agreement.content_hash,
            signed_at=pinned,
            message=render_agreement_message(agreement, pinned, self._platform_name),
        )

    def verify_agreement_signature(
        self,
        agreement: Agreement,
        signature: str,
        expected_address: Optional[str] = None,
        signed_at: Optional[datetime] = None,
    ) -> AgreementSignatureVerification:
        """Verify a wallet signature over an agreement's signing message.

        Args:
            agreement: The signed agreement.
            signature: Hex signature produced by the wallet.
            expected_address: Address the signer must be, if enforced.
            signed_at: Timestamp pinned when the message was built. When
                omitted the current time is used, which only matches a
                signature produced within the same millisecond.

        Raises:
            VerificationFailedError: If recovery fails.
            AddressMismatchError: If the signer is not expected_address.
        """
        log = self._log_operation(
            "verify_agreement_signature", agreement_id=agreement.agreement_id
        )
        if signed_at is None:
            log.warning("agreement_signature_timestamp_not_pinned")
        signing_message = self.build_agreement_message(agreement, signed_at)
        recovered = recover_signer(signing_message.message, signature)

        if expected_address is not None and recovered.lower() != expected_address.lower():
            log.warning(
                "agreement_signature_address_mismatch",
                expected=expected_address,
                recovered=recovered,
            )
            raise AddressMismatchError(expected_address, recovered)

        log.info("agreement_signature_verified", signer=recovered)
        return AgreementSignatureVerification(
            signer_address=recovered,
            content_hash=agreement.content_hash,
            signed_at=signing_message.signed_at,
            verified_at=self._time.now(),
        )

    def link_wallet(
        self, user_id: str, request: WalletLinkRequest, primary: bool = False
    ) -> WalletLink:
        """Link a wallet to a user after verifying a signed challenge.

        Raises:
            InputInvalidError: If address, signature or message is missing.
            VerificationFailedError: If the challenge does not verify; the
                underlying error is kept as ``reason``.
            AddressMismatchError: If the verified signer is not the claimed address.
        """
        if not request.address or not request.signature or not request.message:
            raise InputInvalidError(
                "Address, signature and message are required to link a wallet."
            )
        if not is_address(request.address):
            raise InputInvalidError(
                f"Invalid wallet address: {request.address!r}.", field="address"
            )

        log = self._log_operation("link_wallet", user_id=user_id)
        try:
            verified = self.verify(request.message, request.signature)
        except (VerificationFailedError, AddressMismatchError, ExpiredError) as exc:
            log.warning("wallet_link_verification_failed", error=exc.message)
            raise VerificationFailedError(
                f"Wallet verification failed: {exc.message}", reason=exc
            ) from exc

        if verified.lower() != request.address.lower():
            log.warning("wallet_link_address_mismatch", claimed=request.address, verified=verified)
            raise AddressMismatchError(request.address, verified)

        chain_id = request.chain_id or self._default_chain_id
        link = WalletLink(
            link_id=str(uuid7()),
            user_id=user_id,
            address=verified,
            chain_id=chain_id,
            chain_name=chain_name(chain_id),
            provider=request.provider or DEFAULT_PROVIDER,
            linked_at=self._time.now(),
            primary=primary,
        )
        log.info("wallet_linked", address=verified, chain_id=chain_id)
        return link

    @staticmethod
    def _parse_challenge(message: str) -> tuple[str, Optional[str], Optional[datetime]]:
        """Extract (address, nonce, expiration) from a challenge message.

        Raises:
            VerificationFailedError: If the message is not a sign-in challenge.
        """
        lines = message.split("\n")
        if len(lines) < 2 or not lines[0].endswith(CHALLENGE_HEADER_SUFFIX):
            raise VerificationFailedError("Message is not a sign-in challenge.")
        address = lines[1].strip()
        if not is_address(address):
            raise VerificationFailedError("Challenge does not name a valid address.")

        nonce: Optional[str] = None
        expires_at: Optional[datetime] = None
        for line in lines[2:]:
            if line.startswith(NONCE_PREFIX):
                nonce = line[len(NONCE_PREFIX):].strip()
            elif line.startswith(EXPIRATION_PREFIX):
                try:
                    expires_at = parse_iso(line[len(EXPIRATION_PREFIX):])
                except ValueError as exc:
                    raise VerificationFailedError(
                        "Challenge expiration time is malformed.", reason=exc
                    ) from exc
        return address, nonce, expires_at
