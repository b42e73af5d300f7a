import secrets
import string

def generate_confirmation_code() -> str:
    # Opaque token printed on the patient's QR code
    return f"QR-{secrets.token_urlsafe(16)}"

def generate_booking_reference(length: int = 8) -> str:
    # Short human readable reference, e.g. BK-7QK2M9XA
    alphabet = string.ascii_uppercase + string.digits
    suffix = ''.join(secrets.choice(alphabet) for i in range(length))
    return f"BK-{suffix}"
