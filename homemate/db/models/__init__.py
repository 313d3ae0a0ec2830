# Models package (re-export feature modules for stable imports)
from .user import User
from .otp import OTPCode

__all__ = [
    "User",
    "OTPCode",
]
