"""Exception hierarchy.

The table signals lookup and mapping problems through return values; only the
conditions below are raised.
"""


class GridTableError(Exception):
    """Base exception for gridtable."""
    pass


class EmptySourceError(GridTableError, ValueError):
    """Raised when the grid has no header row to build a column set from."""
    pass


class GridStoreError(GridTableError):
    """Raised by a store when a read or write cannot be completed."""
    pass


class ReadOnlyStoreError(GridStoreError, PermissionError):
    """Raised when a write is attempted on a store with writes disabled."""
    pass
