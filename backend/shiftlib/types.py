"""Common type aliases for the shift claims backend."""
from typing import Any

# Persisted records use the wire field names (id, workerId, cancelledAt, ...)
ShiftRecord = dict[str, Any]
WorkplaceRecord = dict[str, Any]

# Any item returned by a listing endpoint
ListingItem = dict[str, Any]

# List aliases
ShiftList = list[ShiftRecord]
WorkplaceList = list[WorkplaceRecord]
ItemList = list[ListingItem]
