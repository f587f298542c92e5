from slowapi import Limiter
from slowapi.util import get_remote_address

from wayfarer.core.settings import get_settings

_settings = get_settings()

# Shared by every router and registered on app.state in main
limiter = Limiter(key_func=get_remote_address, enabled=_settings.ENABLE_RATE_LIMITING)

READ_LIMIT = _settings.RATE_LIMIT_READ
LIST_LIMIT = _settings.RATE_LIMIT_LIST
UPDATE_LIMIT = _settings.RATE_LIMIT_UPDATE
DELETE_LIMIT = _settings.RATE_LIMIT_DELETE
GENERATE_LIMIT = _settings.RATE_LIMIT_GENERATE
EXTRACT_LIMIT = _settings.RATE_LIMIT_EXTRACT
