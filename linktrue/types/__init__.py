"""
linktrue.types — small value types shared by the store, registry and CLI.

- address:  canonical 20-byte hex addresses and the zero address
- profile:  Profile / Item records
- events:   notification payloads (Registered, ProfileUpdated, ...)
"""

from .address import ZERO_ADDRESS, Address, is_address, to_address
from .events import (ProfileEvent, ProfileUpdated, Registered, UsernameChanged,
                     UsernameTransferred, event_from_dict)
from .profile import Item, Profile

__all__ = [
    "Address",
    "ZERO_ADDRESS",
    "to_address",
    "is_address",
    "Item",
    "Profile",
    "ProfileEvent",
    "Registered",
    "ProfileUpdated",
    "UsernameTransferred",
    "UsernameChanged",
    "event_from_dict",
]
