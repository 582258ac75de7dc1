import math
from typing import Dict, Optional

from .scoring import round_half_up


BEST_SINGLE_KEY = 'bestSingleMs'
BEST_AVERAGE_KEY = 'bestAverageMs'
RECORD_KEYS = (BEST_SINGLE_KEY, BEST_AVERAGE_KEY)


def parse_ms(raw) -> Optional[int]:
    """Stored value -> milliseconds, or None for anything that is not a record."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    ms = round_half_up(value)
    return ms if ms > 0 else None


def is_improvement(candidate: int, current: Optional[int]) -> bool:
    return current is None or candidate < current


class MemoryRecordStore:
    def __init__(self, initial: Optional[Dict[str, object]] = None):
        self._values: Dict[str, object] = dict(initial or {})

    def read(self, key: str) -> Optional[int]:
        return parse_ms(self._values.get(key))

    def write(self, key: str, ms: int) -> None:
        self._values[key] = str(int(ms))

    def raw(self, key: str):
        return self._values.get(key)


class SqlRecordStore:
    """Records in the `record` table. Pushes an app context when given an app."""

    def __init__(self, app=None):
        self.app = app

    def read(self, key: str) -> Optional[int]:
        if self.app is not None:
            with self.app.app_context():
                return self._read(key)
        return self._read(key)

    def write(self, key: str, ms: int) -> None:
        if self.app is not None:
            with self.app.app_context():
                return self._write(key, ms)
        return self._write(key, ms)

    def _read(self, key):
        from launch_control import db
        from launch_control.models import RecordEntry
        entry = db.session.get(RecordEntry, key)
        return parse_ms(entry.value if entry else None)

    def _write(self, key, ms):
        from launch_control import db
        from launch_control.models import RecordEntry
        entry = db.session.get(RecordEntry, key)
        if entry is None:
            entry = RecordEntry(key=key)
        entry.value = str(int(ms))
        try:
            db.session.add(entry)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
