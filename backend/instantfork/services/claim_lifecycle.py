"""Claim code generation/normalization and the claim status state machine.

    active --[redeem]--------------------> redeemed
    active --[now > expires_at, on read]--> expired

Nothing leaves ``redeemed`` or ``expired``. Expiry is evaluated lazily; the
stored status only changes when a claim or redeem attempt observes it.
"""

import re
import secrets
import string
from datetime import datetime
from typing import Optional

from instantfork.config import settings
from instantfork.core.exceptions import InvalidClaimCodeError
from instantfork.models.base import ensure_aware, utcnow
from instantfork.models.claimed_deal import (
    CLAIM_STATUS_ACTIVE,
    CLAIM_STATUS_EXPIRED,
    ClaimedDeal,
)

CLAIM_CODE_ALPHABET = string.ascii_uppercase + string.digits

_SEPARATORS = re.compile(r"[\s\-]+")


def generate_claim_code(length: Optional[int] = None) -> str:
    """Random uppercase alphanumeric code from a CSPRNG."""
    length = length or settings.CLAIM_CODE_LENGTH
    return "".join(secrets.choice(CLAIM_CODE_ALPHABET) for _ in range(length))


def normalize_claim_code(raw: str) -> str:
    """Canonical form of a typed or scanned code.

    Strips whitespace and hyphens and uppercases. Idempotent.

    Raises:
        InvalidClaimCodeError: if the result is not exactly
            ``CLAIM_CODE_LENGTH`` letters/digits.
    """
    if raw is None:
        raise InvalidClaimCodeError()

    code = _SEPARATORS.sub("", raw).upper()
    if len(code) != settings.CLAIM_CODE_LENGTH or any(c not in CLAIM_CODE_ALPHABET for c in code):
        raise InvalidClaimCodeError()
    return code


def is_past_expiry(claim: ClaimedDeal, now: Optional[datetime] = None) -> bool:
    now = ensure_aware(now) if now else utcnow()
    return now > ensure_aware(claim.expires_at)


def effective_status(claim: ClaimedDeal, now: Optional[datetime] = None) -> str:
    """Status as a reader at ``now`` should see it."""
    if claim.status == CLAIM_STATUS_ACTIVE and is_past_expiry(claim, now):
        return CLAIM_STATUS_EXPIRED
    return claim.status


def is_claim_valid(claim: ClaimedDeal, now: Optional[datetime] = None) -> bool:
    """Still redeemable: active and not past its expiry."""
    return effective_status(claim, now) == CLAIM_STATUS_ACTIVE
