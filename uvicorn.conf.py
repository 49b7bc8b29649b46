from vms.core.config import get_settings

settings = get_settings()

app = "vms.main:app"
host = settings.BACKEND_HOST
port = settings.BACKEND_PORT
log_level = "debug" if settings.DEBUG else "info"
# Rate limit counters live in process memory.
workers = 1
