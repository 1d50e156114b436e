from slowapi import Limiter
from slowapi.util import get_remote_address

from hris.core.config import settings

# Shared limiter, attached to app.state in main and used as a decorator on routes
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
