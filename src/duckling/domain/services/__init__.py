"""Domain services for the access layer.

Exports:
    Handle arena:
        - HandleArena: Generation-tagged slot tables for all resources
        - get_arena, reset_arena: Process-wide arena accessors

    Row codec:
        - encode_value, encode_params: Inbound value conversion
        - decode_row, decode_rows: Outbound value conversion
"""

from duckling.domain.services.handle_arena import HandleArena, get_arena, reset_arena
from duckling.domain.services.row_codec import (
    decode_row,
    decode_rows,
    encode_params,
    encode_value,
)

__all__ = [
    # Handle arena
    "HandleArena",
    "get_arena",
    "reset_arena",
    # Row codec
    "encode_value",
    "encode_params",
    "decode_row",
    "decode_rows",
]
