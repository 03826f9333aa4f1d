from datetime import datetime, timezone
from typing import Optional

def utcnow() -> datetime:
    """Date/heure UTC avec fuseau (colonnes `DateTime(timezone=True)`)."""
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Ramène une date en UTC avec fuseau; une date naïve est supposée UTC (SQLite ne stocke pas le fuseau)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
