"""Agreement domain models.

The agreement is owned by document storage; this core only reads it:
- Party: one signing party
- Agreement: identifier, content hash and the ordered party list
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from assent.domain.hashing import hash_document


@dataclass(frozen=True, eq=True)
class Party:
    """A party expected to sign an agreement.

    Attributes:
        name: Display name of the signer.
        email: Email the signer is identified by.
        role: Role in the agreement (e.g. "Buyer"). Empty means unspecified.
    """

    name: str
    email: str
    role: str = ""

    def __post_init__(self) -> None:
        if not self.email or not self.email.strip():
            raise ValueError("party email is required")


@dataclass(frozen=True, eq=True)
class Agreement:
    """An agreement submitted for signature (read-only to this core).

    Attributes:
        agreement_id: Immutable identifier.
        title: Human-readable title, embedded in wallet signing messages.
        content_hash: SHA-256 hex of the document content.
        parties: Ordered parties; step indices align with this order.
        agreement_type: Classification (e.g. "nda"), embedded in signing messages.
        jurisdiction: Governing jurisdiction, if any.
        content: Document text, when the caller has it at hand.
    """

    agreement_id: str
    title: str
    content_hash: str
    parties: tuple[Party, ...] = field(default_factory=tuple)
    agreement_type: str = "general"
    jurisdiction: Optional[str] = field(default=None)
    content: Optional[str] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.agreement_id:
            raise ValueError("agreement_id is required")
        if not self.content_hash:
            raise ValueError("content_hash is required")

    @classmethod
    def create(
        cls,
        agreement_id: str,
        title: str,
        content: str,
        parties: list[Party] | tuple[Party, ...],
        agreement_type: str = "general",
        jurisdiction: str | None = None,
    ) -> Agreement:
        """Build an agreement, hashing the content.

        Args:
            agreement_id: Immutable identifier.
            title: Agreement title.
            content: Document text to hash.
            parties: Ordered signing parties.
            agreement_type: Classification of the agreement.
            jurisdiction: Governing jurisdiction, if any.

        Returns:
            Agreement with content_hash computed from content.
        """
        return cls(
            agreement_id=agreement_id,
            title=title,
            content_hash=hash_document(content),
            parties=tuple(parties),
            agreement_type=agreement_type,
            jurisdiction=jurisdiction,
            content=content,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary (content excluded)."""
        return {
            "agreement_id": self.agreement_id,
            "title": self.title,
            "content_hash": self.content_hash,
            "agreement_type": self.agreement_type,
            "jurisdiction": self.jurisdiction,
            "parties": [
                {"name": p.name, "email": p.email, "role": p.role}
                for p in self.parties
            ],
        }
