"""Constants used across the application."""

from enum import Enum


# Where the session may send the user
class Destination(str, Enum):
    LOGIN = "login"
    PROFILE = "profile"


# Cached profile slot (single "current user" key)
CACHE_KEY = "user"

# Identity field carried in every cached profile record
IDENTITY_FIELD = "email"

# Address field-set
ADDRESS_FIELDS = ("address", "apartment", "city", "state", "country", "zip")

# Credential-reset field-set
CREDENTIAL_FIELDS = ("email", "password", "confirm_password")

# Columns the remote store accepts in a partial update
UPDATABLE_COLUMNS = frozenset(ADDRESS_FIELDS) | {"password"}
