"""Client roster and login credentials.

The roster is a YAML file::

    credentials:            # optional, falls back to EGOV_LOGIN_ID / EGOV_PASSWORD
      login_id: someone@example.com
      password: secret
    clients:
      - name: Example Co.
        url: https://example.smarthr.jp/egov_requests
        drive: https://drive.google.com/drive/folders/abc123

Completion is tracked per day (Asia/Tokyo by default) in the database, so a
client finished today is skipped on re-run and retried tomorrow.
"""

import logging
import os
from datetime import datetime
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

import yaml
from dotenv import load_dotenv

from .models import Client, Credentials

logger = logging.getLogger("egov_scraper")


def run_key(timezone: str = "Asia/Tokyo", now: Optional[datetime] = None) -> str:
    now = now or datetime.now(ZoneInfo(timezone))
    return now.astimezone(ZoneInfo(timezone)).strftime("%Y%m%d")


def load_roster(path: str) -> Tuple[List[Client], Optional[Credentials]]:
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    clients = []
    for i, row in enumerate(raw.get("clients") or []):
        url = (row.get("url") or "").strip()
        if not url:
            logger.warning(f"Roster row {i + 1} has no portal URL, skipping")
            continue
        clients.append(Client(
            name=str(row.get("name") or url),
            url=url,
            drive=str(row.get("drive") or "").strip(),
        ))

    creds = None
    creds_raw = raw.get("credentials") or {}
    if creds_raw.get("login_id") and creds_raw.get("password"):
        creds = Credentials(str(creds_raw["login_id"]), str(creds_raw["password"]))
    return clients, creds


def load_credentials(from_roster: Optional[Credentials] = None) -> Credentials:
    if from_roster is not None:
        return from_roster
    load_dotenv()
    login_id = os.environ.get("EGOV_LOGIN_ID", "")
    password = os.environ.get("EGOV_PASSWORD", "")
    if not login_id or not password:
        raise ValueError("No credentials in roster and EGOV_LOGIN_ID/EGOV_PASSWORD not set")
    return Credentials(login_id, password)
