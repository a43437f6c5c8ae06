"""Shared rate limiter for API endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# 100 requests per minute per IP by default; heavier endpoints set their own limits
limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])
