"""Persisted setting names.

Keys with a single leading underscore hold derived state the engine
writes itself. They remain settable; only the ``__`` prefix is reserved.
"""

FILTER_KEY = "_filter"
PASSWORD_KEY = "password"
ROOM_ID_KEY = "_room_id"
ROOM_NAME_KEY = "room_name"
ROOM_DOMAIN_KEY = "room_domain"
SINCE_KEY = "_since"
TOKEN_KEY = "_token"
USER_ID_KEY = "_user_id"
USER_NAME_KEY = "user_name"
USER_DOMAIN_KEY = "user_domain"

# Cleared together whenever the room changes.
ROOM_DERIVED_KEYS = (ROOM_ID_KEY, SINCE_KEY, FILTER_KEY)
