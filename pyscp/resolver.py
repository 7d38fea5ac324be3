"""Match inbound addresses to catalog entries.

Some consoles bake extra characters into the address they report (a scene bank
letter, trailing indices), so an inbound address is matched against each entry
truncated to that entry's length. The first entry in catalog order wins.
"""

import weakref
from typing import Iterable, Optional

from pyscp.catalog import Catalog, ParameterDefinition

# Per-catalog memo of address -> entry; catalogs are immutable so this never goes stale
_memo: "weakref.WeakKeyDictionary[Catalog, dict]" = weakref.WeakKeyDictionary()


def first_match(entries: Iterable[ParameterDefinition], address: str) -> Optional[ParameterDefinition]:
    for entry in entries:
        if address[:len(entry.address)] == entry.address:
            return entry
    return None


def resolve(catalog: Catalog, address: Optional[str]) -> Optional[ParameterDefinition]:
    if not address:
        return None
    cache = _memo.setdefault(catalog, {})
    entry = cache.get(address)
    if entry is None:
        entry = first_match(catalog.entries, address)
        # Misses are not kept, inbound addresses are unbounded
        if entry is not None:
            cache[address] = entry
    return entry
