"""
Constants and enumerations for the Recipe Cost Engine.

This module defines all system-wide constants including:
- Unit types (weight, volume, count)
- Cost and yield defaults
- Expansion and scaling defaults
- Food cost indicator thresholds
- Application metadata
"""

from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Recipe Cost Engine"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"

# Root of every logger created by the services
LOGGER_ROOT = "recipe_cost"

# ============================================================================
# Unit Types
# ============================================================================

# Weight units
WEIGHT_UNITS: List[str] = [
    "g",  # Grammi
    "kg",  # Chilogrammi
    "etti",  # Etti (100 g)
]

# Volume units
VOLUME_UNITS: List[str] = [
    "ml",  # Millilitri
    "dl",  # Decilitri
    "l",  # Litri
    "cucchiaio",  # Tablespoon (15 ml)
    "cucchiaino",  # Teaspoon (5 ml)
    "tazza",  # Cup (250 ml)
]

# Count units
COUNT_UNITS: List[str] = [
    "pz",  # Pezzi
    "spicchio",  # Clove
    "foglia",  # Leaf
]

# Units with no conversion family
OTHER_UNITS: List[str] = [
    "porzione",
]

ALL_UNITS: List[str] = WEIGHT_UNITS + VOLUME_UNITS + COUNT_UNITS + OTHER_UNITS

# ============================================================================
# Cost and Yield
# ============================================================================

# Yield applied when neither the recipe line nor the ingredient carries one
DEFAULT_YIELD_PERCENTAGE = 100.0
MAX_YIELD_PERCENTAGE = 100.0

# Stored vs. formula effective cost must differ by less than this
COST_TOLERANCE = 0.01

CURRENCY_DECIMAL_PLACES = 2
QUANTITY_DECIMAL_PLACES = 4

# ============================================================================
# Expansion and Scaling
# ============================================================================

DEFAULT_MAX_EXPANSION_DEPTH = 32
# Nesting is expanded recursively; keep well below the interpreter recursion limit
MAX_EXPANSION_DEPTH_LIMIT = 256

TIME_POLICY_LINEAR = "linear"
TIME_POLICY_SUBLINEAR = "sublinear"
TIME_POLICY_CONSTANT = "constant"

TIME_POLICIES: List[str] = [
    TIME_POLICY_LINEAR,
    TIME_POLICY_SUBLINEAR,
    TIME_POLICY_CONSTANT,
]

DEFAULT_TIME_POLICY = TIME_POLICY_LINEAR

# ============================================================================
# Food Cost Indicator Thresholds
# ============================================================================

# Food cost percentage (cost per portion / selling price)
FOOD_COST_OPTIMAL_MAX_PCT = 25.0
FOOD_COST_ATTENTION_MAX_PCT = 35.0

# Absolute production cost per portion, used when there is no selling price
PRODUCTION_COST_LOW_MAX = 3.0
PRODUCTION_COST_MEDIUM_MAX = 8.0

# ============================================================================
# Database Constants
# ============================================================================

DATABASE_FILENAME = "recipe_cost.db"

# ============================================================================
# Environment Variables
# ============================================================================

ENV_ENVIRONMENT = "RECIPE_COST_ENV"
ENV_LOG_LEVEL = "RECIPE_COST_LOG_LEVEL"
ENV_MAX_DEPTH = "RECIPE_COST_MAX_DEPTH"
ENV_TIME_POLICY = "RECIPE_COST_TIME_POLICY"

DEFAULT_LOG_LEVEL = "INFO"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Must be a valid number"
ERROR_INVALID_POSITIVE = "Must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Must be zero or greater"
ERROR_INVALID_YIELD = "Must be greater than 0 and at most 100"
ERROR_INVALID_UNIT = "Invalid unit"
ERROR_INVALID_TIME_POLICY = "Must be one of: linear, sublinear, constant"
