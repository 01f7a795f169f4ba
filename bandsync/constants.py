"""Global constants for the bandsync application."""

import string

# Collection names
USERS_COLLECTION = "users"
GROUPS_COLLECTION = "groups"
PERMISSIONS_COLLECTION = "permissions"
EVENTS_COLLECTION = "events"
SETLISTS_COLLECTION = "setlists"
FINANCES_COLLECTION = "finances"
MERCH_COLLECTION = "merchandise"
MERCH_SALES_COLLECTION = "merch_sales"
TASKS_COLLECTION = "tasks"
CHATS_COLLECTION = "chats"

# Join codes
JOIN_CODE_LENGTH = 6
JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
JOIN_CODE_MAX_ATTEMPTS = 10

# Store access
STORE_TIMEOUT = 10.0
STORE_RETRY_ATTEMPTS = 3
STORE_RETRY_BASE_DELAY = 0.2
TRANSACTION_MAX_ATTEMPTS = 5

# Merchandise
MERCH_SIZES = ("S", "M", "L", "XL", "XXL")
DEFAULT_CURRENCY = "EUR"
