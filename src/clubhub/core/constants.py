"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Subdomain rules
MIN_SUBDOMAIN_LENGTH = 3
MAX_SUBDOMAIN_LENGTH = 63

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_STATUS_LENGTH = 50
MAX_ROLE_NAME_LENGTH = 50
MAX_STRIPE_ID_LENGTH = 255
MAX_ERROR_MESSAGE_LENGTH = 1000
MAX_CURRENCY_LENGTH = 3
MAX_DESCRIPTION_LENGTH = 500

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
BCRYPT_ROUNDS = 12

# Login lockout
DEFAULT_MAX_FAILED_LOGIN_ATTEMPTS = 5
DEFAULT_LOCKOUT_MINUTES = 15

# Signup sessions
DEFAULT_SIGNUP_SESSION_TTL_HOURS = 24

# Checkout metadata keys (read back by webhooks and polling)
SIGNUP_SESSION_ID_KEY = "signup_session_id"
TENANT_ID_KEY = "tenant_id"
PLAN_ID_KEY = "plan_id"

# Stripe
STRIPE_CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"
DEFAULT_STRIPE_TIMEOUT_SECONDS = 30
DEFAULT_STRIPE_MAX_NETWORK_RETRIES = 2

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"
