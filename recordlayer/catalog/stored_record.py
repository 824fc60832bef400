from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class StoredRecord:
    """A record together with its type name and evaluated primary key."""
    record_type: str
    primary_key: Tuple[Any, ...]
    data: Dict[str, Any]
