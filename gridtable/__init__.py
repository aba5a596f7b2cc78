"""gridtable package initialization.

Single source of truth for store schema + package versions so that code, tests,
and scripts can import without duplicating literals.
"""

STORE_SCHEMA_VERSION = "1.0"
PACKAGE_VERSION = "0.1.0"  # Keep in sync with pyproject version.

__all__ = ["STORE_SCHEMA_VERSION", "PACKAGE_VERSION"]
