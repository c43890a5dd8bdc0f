"""Constants for the storefront persistence layer."""

from enum import Enum


class Collection(str, Enum):
    """Logical keys of the two durable collections."""

    ORDERS = "orders"
    ADMINS = "admin-users"


ORDER_ID_PREFIX = "ORD"
ADMIN_ID_PREFIX = "admin"

DEFAULT_ITEM_SIZE = "Medium"

DEFAULT_BCRYPT_ROUNDS = 10  # tuned for interactive login latency
MAX_PASSWORD_BYTES = 72  # bcrypt input limit

DEFAULT_BLOB_BASE_URL = "https://blob.vercel-storage.com"
BLOB_PATH_PREFIX = "storefront-"

SESSION_COOKIE_NAME = "storefront.sid"
SESSION_MAX_AGE_SECS = 4 * 60 * 60
