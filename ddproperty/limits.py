from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

# Shared limiter for public, unauthenticated write endpoints (login, inquiries)
limiter = Limiter(key_func=get_remote_address)

LOGIN_RATE = "5/minute"
INQUIRY_RATE = "10/minute"

__all__ = [
    "limiter",
    "LOGIN_RATE",
    "INQUIRY_RATE",
    "RateLimitExceeded",
    "SlowAPIMiddleware",
]
