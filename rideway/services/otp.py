import secrets

OTP_DIGITS = "0123456789"


def generate_otp(length: int = 6) -> str:
    """Returns a zero-padded numeric code drawn from the OS CSPRNG."""
    if length < 1:
        raise ValueError("OTP length must be positive")
    return "".join(secrets.choice(OTP_DIGITS) for _ in range(length))
