"""
Parameter Cache Global Constants

Centralized location for system-wide constants used across the service.
"""

# Identifier marker for ids generated by this service. Ids coming from the
# parameter service never carry it.
INTERNAL_ID_PREFIX = "_R"

# Suffix of the secondary hash that maps entity names to ids
NAME_INDEX_SUFFIX = "NAMES"

# Application Constants
APP_NAME = "Parameter Cache"
APP_VERSION = "0.1.0"
