"""
Runtime settings, read from ``ALBION_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from albion_sheets.access import RevokePolicy
from albion_sheets.provisioner import DEFAULT_SHEET_NAME

LOG_FORMAT = "%(asctime)s  %(name)-24s  %(levelname)-8s  %(message)s"


@dataclass(frozen=True)
class Settings:
    base_dir: Path = Path(".")
    credentials_path: Optional[Path] = None
    owner_email: Optional[str] = None
    revoke_policy: RevokePolicy = RevokePolicy.STRICT
    sheet_name: str = DEFAULT_SHEET_NAME
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        env = os.environ if environ is None else environ
        base_dir = Path(env.get("ALBION_BASE_DIR", "."))
        return cls(
            base_dir=base_dir,
            credentials_path=resolve_credentials_path(base_dir, env.get("ALBION_GOOGLE_CREDENTIALS")),
            owner_email=env.get("ALBION_OWNER_EMAIL") or None,
            revoke_policy=RevokePolicy.parse(env.get("ALBION_REVOKE_POLICY", "strict")),
            sheet_name=env.get("ALBION_SHEET_NAME", DEFAULT_SHEET_NAME),
            log_level=env.get("ALBION_LOG_LEVEL", "INFO").upper(),
        )


def resolve_credentials_path(base_dir: Path, env_path: Optional[str] = None) -> Path | None:
    """Resolve the Google service-account key.

    Uses *env_path* when set; otherwise the first ``.json`` in
    ``<base_dir>/Credentials``.
    """
    if env_path:
        p = Path(env_path)
        return p.resolve() if p.exists() else None
    creds_dir = base_dir / "Credentials"
    if not creds_dir.is_dir():
        return None
    for f in sorted(creds_dir.glob("*.json")):
        return f.resolve()
    return None
