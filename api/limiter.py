"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in
api/routes/auth.py (to apply per-route limits with @limiter.limit()).

Using a single shared instance ensures all routes share the same in-memory
counter store. If this were instantiated in each module separately, each
module would get its own isolated counter and rate limits would never trigger.

LOGIN_LIMIT comes from settings (LOGIN_RATE_LIMIT) so tests can raise it.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

LOGIN_LIMIT = get_settings().login_rate_limit

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
