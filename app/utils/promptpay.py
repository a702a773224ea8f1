"""
PromptPay QR payload builder (EMVCo merchant-presented mode).

Fields are tag-length-value strings: two-digit tag, two-digit length, value.
The trailing CRC tag (63) covers every character before its value, including "6304".
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

PAYLOAD_FORMAT_VERSION = "000201"
POI_STATIC = "010211"
POI_DYNAMIC = "010212"
PROMPTPAY_AID = "A000000677010111"
COUNTRY_CODE_TH = "5802TH"
CURRENCY_THB = "5303764"
CRC_TAG = "6304"

# Merchant account sub-tags by target kind
_TARGET_PHONE = "01"
_TARGET_TAX_ID = "02"
_TARGET_EWALLET = "03"


def tlv(tag: str, value: str) -> str:
    """Encode one tag-length-value field."""
    if len(value) > 99:
        raise ValueError(f"Field {tag} is too long ({len(value)} characters)")
    return f"{tag}{len(value):02d}{value}"


def crc16_ccitt(data: bytes, crc: int = 0xFFFF) -> int:
    """CRC-16/CCITT-FALSE: polynomial 0x1021, initial value 0xFFFF, no reflection."""
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return crc


def format_amount(amount: Union[Decimal, float, int, str]) -> str:
    """Render an amount with exactly two decimal places, rounding half up."""
    try:
        value = Decimal(str(amount))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite() or value < 0:
        raise ValueError(f"Amount must be a non-negative number, got {amount!r}")
    return str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _merchant_target(payee_id: str) -> str:
    digits = re.sub(r"\D", "", payee_id or "")
    if len(digits) == 13:
        return tlv(_TARGET_TAX_ID, digits)
    if len(digits) == 15:
        return tlv(_TARGET_EWALLET, digits)
    if len(digits) in (9, 10):
        # Mobile numbers are sent in international form, left-padded to 13 digits
        return tlv(_TARGET_PHONE, ("66" + digits[1:] if digits.startswith("0") else "66" + digits).zfill(13))
    raise ValueError("PromptPay id must be a 10-digit phone, 13-digit tax id or 15-digit e-wallet id")


def build_payload(
    payee_id: str,
    amount: Optional[Union[Decimal, float, int, str]] = None,
    *,
    legacy_checksum: bool = False,
) -> str:
    """
    Build the PromptPay QR payload for a payee and optional amount.

    Without an amount the code is static (the payer types the amount).
    legacy_checksum=True emits a bare "6304" with no CRC value, matching the
    placeholder older clients produced; scanners reject such codes.
    """
    merchant_info = tlv("29", tlv("00", PROMPTPAY_AID) + _merchant_target(payee_id))

    parts = [
        PAYLOAD_FORMAT_VERSION,
        POI_STATIC if amount is None else POI_DYNAMIC,
        merchant_info,
        COUNTRY_CODE_TH,
        CURRENCY_THB,
    ]
    if amount is not None:
        parts.append(tlv("54", format_amount(amount)))
    parts.append(CRC_TAG)

    payload = "".join(parts)
    if legacy_checksum:
        return payload
    return payload + f"{crc16_ccitt(payload.encode('ascii')):04X}"
