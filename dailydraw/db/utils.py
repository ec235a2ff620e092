from pathlib import Path
from datetime import datetime, timezone
from typing import Optional


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Resolve 'sqlite:///./relative/path' to an absolute sqlite:/// URL.

    Keeps other URL forms unchanged.
    """
    prefix = "sqlite:///./"
    if not url.startswith(prefix):
        return url
    rel = url[len(prefix) :]
    return f"sqlite:///{(project_root / rel).resolve()}"


def ts_iso(ts: Optional[int]) -> Optional[str]:
    """Convert an integer UNIX timestamp to an ISO 8601 string in UTC.

    Period keys and entry timestamps are stored as integer seconds; this is
    a small helper for log lines and JSON payloads.
    """
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
