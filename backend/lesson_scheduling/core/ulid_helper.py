"""Record ids for scheduling rows.

Every table keys on a 26-character ULID string. ULIDs sort by creation
time, which is the stable instructor order slot search relies on.
"""

import ulid


def generate_ulid() -> str:
    return str(ulid.ULID())


def is_valid_ulid(value: str) -> bool:
    """True when ``value`` parses as a ULID."""
    try:
        ulid.ULID.from_str(value)
    except (ValueError, TypeError):
        return False
    return True
