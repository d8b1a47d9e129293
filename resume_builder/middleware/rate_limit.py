"""Shared slowapi limiter, keyed by client address."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Applied per route on the AI endpoints, which call a metered external API
AI_RATE_LIMIT = "30/hour"

limiter = Limiter(key_func=get_remote_address)
