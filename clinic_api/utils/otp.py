import datetime
import hashlib
import secrets


def generate_otp(length: int) -> str:
    """
    Generates a cryptographically secure numeric OTP of a given length.

    Args:
        length (int): The length of the OTP.

    Returns:
        str: A zero-padded OTP as a string.
    """
    otp = secrets.randbelow(10**length)
    return str(otp).zfill(length)


def hash_otp(otp: str) -> str:
    """Only the sha256 digest of an OTP is ever stored."""
    return hashlib.sha256(otp.encode("utf-8")).hexdigest()


def get_otp_expiry(minutes: int) -> datetime.datetime:
    """
    Returns the expiry datetime for an OTP after a specified number of minutes.

    Args:
        minutes (int): The number of minutes until the OTP expires.

    Returns:
        datetime.datetime: The expiry datetime.
    """
    return datetime.datetime.now() + datetime.timedelta(minutes=minutes)
