from slowapi import Limiter
from slowapi.util import get_remote_address

from projecthub.core.config import settings

# IP-based; identities come from an external provider and are optional here
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

READ_LIMIT = settings.RATE_LIMIT_READS
WRITE_LIMIT = settings.RATE_LIMIT_WRITES
