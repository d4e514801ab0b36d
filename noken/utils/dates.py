from datetime import datetime, timezone


def utcnow() -> datetime:
    """Horodatage UTC naïf, format stocké en base."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
