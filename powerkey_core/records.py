# powerkey_core/records.py
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union

from .models import Record, RecordKind


@dataclass(frozen=True)
class EnergySummary:
    generation: Decimal
    consumption: Decimal

    @property
    def grid_export(self) -> Decimal:
        return max(Decimal(0), self.generation - self.consumption)


class RecordBook:
    """
    Caller-owned list of records for one session, newest first.

    Values stay None until a decrypt succeeds.
    """

    def __init__(self):
        self.records: List[Record] = []

    def add(self, record_id: str, kind: Union[RecordKind, str], source: str) -> Record:
        rec = Record(id=record_id, kind=RecordKind(kind), source=source)
        self.records.insert(0, rec)
        return rec

    def get(self, record_id: str) -> Optional[Record]:
        return next((r for r in self.records if r.id == record_id), None)

    def mark_decrypted(self, record_id: str, value: Decimal) -> Optional[Record]:
        rec = self.get(record_id)
        if rec:
            rec.value = value
            rec.encrypted = False
        return rec


def summarize(total_generation: Decimal, total_consumption: Decimal) -> EnergySummary:
    return EnergySummary(generation=Decimal(total_generation), consumption=Decimal(total_consumption))
