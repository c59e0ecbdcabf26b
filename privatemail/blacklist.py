"""Sender blacklist.

Entries are full addresses (``john@doe.example``) or bare domains
(``doe.example``, optionally written ``@doe.example``). Matching is
case-insensitive on the whole address; a domain entry covers every
local-part at exactly that domain.
"""

import enum


class Decision(enum.Enum):
    ALLOW = "allow"
    DROP = "drop"


def _normalise(entry):
    entry = entry.strip().lower()
    return entry[1:] if entry.startswith("@") else entry


def matching_entry(address, blacklist):
    """Return the blacklist entry that ``address`` hits, or None."""
    address = address.strip().lower()
    if not address:
        return None
    domain = address.rsplit("@", 1)[-1] if "@" in address else None
    for entry in blacklist:
        entry = _normalise(entry)
        if not entry:
            continue
        if "@" in entry:
            if entry == address:
                return entry
        elif entry == domain:
            return entry
    return None


def evaluate(address, blacklist) -> Decision:
    if matching_entry(address, blacklist) is not None:
        return Decision.DROP
    return Decision.ALLOW
