import razorpay
from razorpay.errors import SignatureVerificationError
from fastapi import HTTPException

from app.core.config import RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET

RECEIPT_MAX_LENGTH = 40

# Initialise only when credentials are available
razorpay_client = None
if RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET:
    razorpay_client = razorpay.Client(auth=(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET))


def get_payment_gateway():
    if razorpay_client is None:
        raise HTTPException(
            status_code=503,
            detail="Payment gateway not configured. Please contact support."
        )
    return razorpay_client


def build_receipt(booking_id, timestamp_ms: int) -> str:
    receipt = f"b_{str(booking_id)[-8:]}_{str(timestamp_ms)[-8:]}"
    return receipt[:RECEIPT_MAX_LENGTH]


def gateway_error_message(exc: Exception, default: str) -> str:
    """Surface the gateway's own description when it is short enough to be safe."""
    message = str(exc) if exc.args else ""
    if message and len(message) < 300:
        return message
    return default


def is_valid_signature(client, order_id: str, payment_id: str, signature: str) -> bool:
    """HMAC_SHA256(secret, "<order_id>|<payment_id>") compared in constant time by the SDK."""
    try:
        client.utility.verify_payment_signature({
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        })
    except SignatureVerificationError:
        return False
    return True
