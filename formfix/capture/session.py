import secrets
from functools import lru_cache

SESSION_PREFIX = "ffx_"


def new_session_id() -> str:
    return SESSION_PREFIX + secrets.token_hex(6)


@lru_cache(maxsize=None)
def process_session_id() -> str:
    """One token for the lifetime of the process."""
    return new_session_id()
