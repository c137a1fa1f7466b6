"""
JSON-file key-value store.

Holds the admin account list, the credential map and the partner-form URL.
Values are JSON-serialisable; every set/remove rewrites the whole file.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from cms.core.config import get_settings

logger = logging.getLogger(__name__)

ADMIN_USERS_KEY = "admin-users"
ADMIN_CREDENTIALS_KEY = "admin-credentials"
PARTNER_FORM_URL_KEY = "partner-form-url"

_lock = threading.Lock()


class LocalStorage:
    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or get_settings().storage_path)

    def load(self) -> dict:
        if self.path.exists():
            with self.path.open("r", encoding="utf-8") as f:
                try:
                    data = json.load(f)
                except json.JSONDecodeError:
                    logger.warning("Ignoring unreadable storage file %s", self.path)
                    return {}
            return data if isinstance(data, dict) else {}
        return {}

    def save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with _lock:
            return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with _lock:
            data = self.load()
            data[key] = value
            self.save(data)

    def remove(self, key: str) -> None:
        with _lock:
            data = self.load()
            if key in data:
                del data[key]
                self.save(data)

    # -------------------------- admin accounts --------------------------
    def admin_users(self) -> list[str]:
        users = self.get(ADMIN_USERS_KEY, [])
        return [u for u in users if isinstance(u, str)] if isinstance(users, list) else []

    def admin_credentials(self) -> dict:
        creds = self.get(ADMIN_CREDENTIALS_KEY, {})
        return creds if isinstance(creds, dict) else {}

    def put_admin(self, email: str, password_hash: str) -> None:
        with _lock:
            data = self.load()
            creds = data.get(ADMIN_CREDENTIALS_KEY) or {}
            creds[email] = password_hash
            data[ADMIN_CREDENTIALS_KEY] = creds
            users = data.get(ADMIN_USERS_KEY) or []
            if email not in users:
                users.append(email)
            data[ADMIN_USERS_KEY] = users
            self.save(data)

    def drop_admin(self, email: str) -> None:
        with _lock:
            data = self.load()
            creds = data.get(ADMIN_CREDENTIALS_KEY) or {}
            creds.pop(email, None)
            data[ADMIN_CREDENTIALS_KEY] = creds
            data[ADMIN_USERS_KEY] = [u for u in (data.get(ADMIN_USERS_KEY) or []) if u != email]
            self.save(data)

    # -------------------------- panel configuration --------------------------
    def partner_form_url(self) -> str:
        value = self.get(PARTNER_FORM_URL_KEY, "")
        return value if isinstance(value, str) else ""

    def set_partner_form_url(self, url: str) -> None:
        self.set(PARTNER_FORM_URL_KEY, url)
