"""QR payloads for claimed deals.

The QR code carries a small JSON document describing the claim; the
restaurant scanner decodes it and redeems by ``claim_code``, exactly as if
the 8-character code had been typed by hand.
"""

import base64
import io
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import qrcode
import structlog

from instantfork.core.exceptions import InvalidClaimCodeError, InvalidQRCodeError
from instantfork.models.base import ensure_aware
from instantfork.models.claimed_deal import ClaimedDeal
from instantfork.services.claim_lifecycle import normalize_claim_code

logger = structlog.get_logger(__name__)

QR_PAYLOAD_TYPE = "instantfork_deal_claim"


@dataclass
class QRPayload:
    """Decoded QR document."""

    claim_code: str
    deal_title: Optional[str] = None
    restaurant_name: Optional[str] = None
    deal_price: Optional[float] = None
    original_price: Optional[float] = None
    expires_at: Optional[str] = None
    claimed_at: Optional[str] = None


def _isoformat(value: datetime) -> str:
    return ensure_aware(value).isoformat()


def build_qr_payload(claim: ClaimedDeal) -> Dict[str, Any]:
    """Fixed-shape JSON document for a claim."""
    return {
        "type": QR_PAYLOAD_TYPE,
        "claim_code": claim.claim_code,
        "deal_title": claim.deal_title,
        "restaurant_name": claim.restaurant_name,
        "deal_price": float(claim.deal_price),
        "original_price": float(claim.original_price),
        "expires_at": _isoformat(claim.expires_at),
        "claimed_at": _isoformat(claim.claimed_at),
    }


def encode_qr_payload(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), sort_keys=True)


def render_qr_data_url(text: str) -> str:
    """PNG image of ``text`` as a ``data:`` URL for direct use in <img src>."""
    img = qrcode.make(text)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def parse_qr_payload(text: str) -> QRPayload:
    """Decode scanned QR text.

    Raises:
        InvalidQRCodeError: not JSON, wrong type tag, or no usable claim code.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        logger.info("qr_parse_failed", reason="not_json")
        raise InvalidQRCodeError()

    if not isinstance(data, dict) or data.get("type") != QR_PAYLOAD_TYPE:
        logger.info("qr_parse_failed", reason="wrong_type")
        raise InvalidQRCodeError()

    raw_code = data.get("claim_code")
    if not isinstance(raw_code, str) or not raw_code.strip():
        logger.info("qr_parse_failed", reason="missing_claim_code")
        raise InvalidQRCodeError()

    try:
        code = normalize_claim_code(raw_code)
    except InvalidClaimCodeError:
        raise InvalidQRCodeError()

    return QRPayload(
        claim_code=code,
        deal_title=data.get("deal_title"),
        restaurant_name=data.get("restaurant_name"),
        deal_price=data.get("deal_price"),
        original_price=data.get("original_price"),
        expires_at=data.get("expires_at"),
        claimed_at=data.get("claimed_at"),
    )
