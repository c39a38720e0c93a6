"""Persisted settings (SQLite).

Stores plain string options keyed by name; the only option the embed tester
needs is the Google Maps Embed API key.

CLI:
    python src/settings_store.py --config config/config.yml --show
    python src/settings_store.py --config config/config.yml --set-key <KEY>
    python src/settings_store.py --config config/config.yml --from-env
"""

from __future__ import annotations

import argparse
import datetime as dt
import os
import sqlite3
from pathlib import Path

import config_loader  # type: ignore


DEFAULT_API_KEY_OPTION = "google_maps_embed_api_key"


def _ensure_store_db(db_path: str) -> None:
    Path(os.path.dirname(db_path) or ".").mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS options (
                option_name TEXT PRIMARY KEY,
                option_value TEXT NOT NULL,
                updated_at_utc TEXT NOT NULL
            )
            """
        )
        conn.commit()


def mask_secret(value: str) -> str:
    """Show only the last four characters of a secret."""
    if not value:
        return ""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


class SettingsStore:
    def __init__(
        self, db_path: str, api_key_option: str = DEFAULT_API_KEY_OPTION
    ) -> None:
        self.db_path = db_path
        self.api_key_option = api_key_option
        _ensure_store_db(db_path)

    def get_option(self, name: str, default: str = "") -> str:
        with sqlite3.connect(self.db_path) as conn:
            cur = conn.execute(
                "SELECT option_value FROM options WHERE option_name = ?", (name,)
            )
            row = cur.fetchone()
        return str(row[0]) if row else default

    def update_option(self, name: str, value: str) -> None:
        now = dt.datetime.now(dt.timezone.utc).isoformat()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO options (option_name, option_value, updated_at_utc)
                VALUES (?, ?, ?)
                ON CONFLICT(option_name) DO UPDATE SET
                    option_value=excluded.option_value,
                    updated_at_utc=excluded.updated_at_utc
                """,
                (name, value, now),
            )
            conn.commit()

    def get_api_key(self) -> str:
        return self.get_option(self.api_key_option)

    def set_api_key(self, value: str) -> None:
        self.update_option(self.api_key_option, value)


def store_from_config(cfg: config_loader.Config) -> SettingsStore:
    return SettingsStore(cfg.settings.store_path, cfg.settings.api_key_option)


def main() -> None:
    parser = argparse.ArgumentParser(description="Manage the stored Maps Embed API key.")
    parser.add_argument("--config", required=True, help="Path to config/config.yml")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--set-key", help="Store this API key.")
    group.add_argument(
        "--from-env",
        action="store_true",
        help="Store the API key from the environment variable named in the config.",
    )
    group.add_argument("--show", action="store_true", help="Print the stored key (masked).")
    args = parser.parse_args()

    cfg = config_loader.load_config(args.config)
    store = store_from_config(cfg)

    if args.show:
        key = store.get_api_key()
        print(f"API key: {mask_secret(key)}" if key else "API key: (not set)")
        return

    if args.from_env:
        key = cfg.api.get_google_maps_api_key() or ""
        if not key:
            raise SystemExit(
                f"ERROR: {cfg.api.google_maps_api_key_env} is not set; nothing stored."
            )
    else:
        key = args.set_key.strip()
        if not key:
            print("WARNING: storing an empty API key; embeds will not render.", flush=True)

    store.set_api_key(key)
    print(f"Stored API key {mask_secret(key)} -> {cfg.settings.store_path}")


if __name__ == "__main__":
    main()
