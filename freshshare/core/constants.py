"""Global constants for the FreshShare application."""

# Collections
USERS_COLLECTION = "users"
GROUPS_COLLECTION = "groups"
LISTINGS_COLLECTION = "listings"
QUICK_ORDERS_COLLECTION = "quick_orders"

# Session keys
SESSION_USER_ID = "user_id"
SESSION_IS_ADMIN = "is_admin"

# Group roles
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

# Ranked products
PRODUCT_STATUS_ACTIVE = "active"
PRODUCT_STATUS_REQUESTED = "requested"
PRODUCT_STATUSES = (PRODUCT_STATUS_ACTIVE, PRODUCT_STATUS_REQUESTED)
VOTE_UP = "up"
VOTE_DOWN = "down"
VOTE_CLEAR = "clear"
VOTE_CHOICES = (VOTE_UP, VOTE_DOWN, VOTE_CLEAR)
DEFAULT_MAX_ACTIVE_PRODUCTS = 20
MAX_ACTIVE_PRODUCTS_LIMIT = 200
PRODUCT_NAME_MAX_LENGTH = 120
PRODUCT_TEXT_MAX_LENGTH = 500

# Piece ordering
RESERVATION_FILLING = "filling"
RESERVATION_FULFILLED = "fulfilled"
DEFAULT_CASE_SIZE = 1

# Per-item outcomes reported by piece reservation callers
PIECES_OK = "ok"
PIECES_SKIPPED = "skipped"
PIECES_MISSING = "missing"
PIECES_PO_DISABLED = "po-disabled"
PIECES_INVALID_CASE_SIZE = "invalid-case-size"
PIECES_ERROR = "error"

# Quick orders
QUICK_ORDER_SUBMITTED = "submitted"
