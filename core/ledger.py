from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Set

from core.rows import Row, as_text, row_key


@dataclass(frozen=True)
class EditLedger:
    """Uncommitted cell edits: row key -> column key -> pending text.

    Every update returns a new ledger; existing instances never change, so
    identity comparison tells a caller whether anything was edited since a
    snapshot was taken.
    """

    edits: Mapping[str, Mapping[str, str]] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "EditLedger":
        return cls()

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Mapping[str, object]]]) -> "EditLedger":
        if not raw:
            return cls()
        edits = {
            str(key): MappingProxyType({str(col): as_text(val) for col, val in (cells or {}).items()})
            for key, cells in raw.items()
        }
        return cls(edits=MappingProxyType(edits))

    def set_cell_edit(self, key: str, column: str, value: object) -> "EditLedger":
        row_edits: Dict[str, str] = dict(self.edits.get(key, {}))
        row_edits[column] = as_text(value)
        edits = dict(self.edits)
        edits[key] = MappingProxyType(row_edits)
        return EditLedger(edits=MappingProxyType(edits))

    def get_cell_value(self, row: Row, column: str, fallback: object = None) -> str:
        pending = self.edits.get(row_key(row), {}).get(column)
        if pending is not None:
            return pending
        return as_text(fallback)

    def entry(self, key: str) -> Mapping[str, str]:
        return self.edits.get(key, MappingProxyType({}))

    def modified_rows(self) -> Set[str]:
        return {key for key, cells in self.edits.items() if cells}

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {key: dict(cells) for key, cells in self.edits.items()}

    def __iter__(self) -> Iterator[str]:
        return iter(self.edits)

    def __contains__(self, key: object) -> bool:
        return key in self.edits

    def __len__(self) -> int:
        return len(self.edits)

    def __bool__(self) -> bool:
        return bool(self.edits)
