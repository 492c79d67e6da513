"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_COMMISSION_RATE = 2.0
MAX_COMMISSION_RATE = 100.0
EXPIRING_SOON_DAYS = 7
MIN_PASSWORD_LENGTH = 6
REFERRAL_CODE_LENGTH = 8
DELETE_OTP_DIGITS = 6
DELETE_OTP_TTL_MINUTES = 10
DELETE_OTP_MAX_ATTEMPTS = 5
IB_UPLINE_MAX_DEPTH = 5
TOP_PRODUCTS_LIMIT = 5
DEFAULT_PRODUCT_VERSION = "1.0"
LIFETIME_LABEL = "Lifetime"
