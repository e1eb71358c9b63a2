"""Record identifiers.

A record created while offline carries a client-generated ``LocalId`` until
the synchronizer delivers it and swaps in the server-assigned ``RemoteId``.
Keeping the two as distinct types stops a temporary id from leaking into a
remote payload as a foreign key.
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Union

LOCAL_PREFIX = "temp-"


@dataclass(frozen=True)
class LocalId:
    """Temporary identifier for a record that only exists locally."""

    value: str

    def __str__(self) -> str:
        return self.value

    @property
    def is_local(self) -> bool:
        return True


@dataclass(frozen=True)
class RemoteId:
    """Server-assigned identifier."""

    value: str

    def __str__(self) -> str:
        return self.value

    @property
    def is_local(self) -> bool:
        return False


RecordId = Union[LocalId, RemoteId]


def new_local_id() -> LocalId:
    """Generate a fresh temporary identifier."""
    return LocalId(f"{LOCAL_PREFIX}{uuid.uuid4().hex}")


def parse_record_id(raw: Union[str, LocalId, RemoteId]) -> RecordId:
    """Recover the tagged identifier from its stored string form.

    Raises:
        ValueError: If the identifier is empty
    """
    if isinstance(raw, (LocalId, RemoteId)):
        return raw
    raw = str(raw).strip()
    if not raw:
        raise ValueError("Empty record identifier")
    if raw.startswith(LOCAL_PREFIX):
        return LocalId(raw)
    return RemoteId(raw)


def parse_optional_id(raw: Optional[Union[str, LocalId, RemoteId]]) -> Optional[RecordId]:
    if raw is None or raw == "":
        return None
    return parse_record_id(raw)


def id_str(record_id: Optional[RecordId]) -> Optional[str]:
    return None if record_id is None else str(record_id)
