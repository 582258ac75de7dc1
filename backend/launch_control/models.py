from datetime import datetime, timezone

from launch_control import db


def _utcnow():
    return datetime.now(timezone.utc)


class RecordEntry(db.Model):
    """One persisted best score, keyed by a fixed identifier.

    The value is kept as text so whatever was stored can be read back and
    judged; see services.games.records.parse_ms.
    """
    __tablename__ = 'record'
    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
