from slowapi import Limiter
from slowapi.util import get_remote_address

from faculty_appraisal.core.config import settings

# Keyed per client address; applied with @limiter.limit on mutating workflow routes
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
