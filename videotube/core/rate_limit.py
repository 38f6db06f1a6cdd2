from slowapi import Limiter
from slowapi.util import get_remote_address

# Shared by the app state and the route decorators so tests can switch it off in one place.
limiter = Limiter(key_func=get_remote_address)
