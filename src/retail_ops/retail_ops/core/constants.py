"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

BASE_MULTIPLIER = Decimal("1")
MAX_CODE_LENGTH = 64
MAX_NAME_LENGTH = 255
MAX_SKU_LENGTH = 64
# employee_id / store_id columns
MAX_REF_LENGTH = 64

# Column scales: price_pc DECIMAL(12,2), multiplier_to_base DECIMAL(18,6).
PRICE_STEP = Decimal("0.01")
MAX_PRICE = Decimal("9999999999.99")
MULTIPLIER_STEP = Decimal("0.000001")
MAX_MULTIPLIER = Decimal("999999999999.999999")
