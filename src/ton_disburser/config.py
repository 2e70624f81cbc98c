from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping
from dotenv import load_dotenv

from .project_constants import DEFAULT_CONFIG_FILE, DEFAULT_GATEWAY_URL

log = logging.getLogger("config")


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Settings:
    gateway_url: str
    api_key: str | None
    config_path: str

    @staticmethod
    def from_env(
        gateway_url_override: str | None = None,
        config_path_override: str | None = None,
    ) -> "Settings":
        load_dotenv()

        gateway_url = gateway_url_override or os.getenv("TON_GATEWAY_URL", "").strip()
        config_path = config_path_override or os.getenv("DISBURSER_CONFIG", "").strip()
        api_key = os.getenv("TON_GATEWAY_API_KEY", "").strip() or None

        return Settings(
            gateway_url=gateway_url or DEFAULT_GATEWAY_URL,
            api_key=api_key,
            config_path=config_path or DEFAULT_CONFIG_FILE,
        )


class ConfigStore:
    """Flat key=value settings file (seed, comment, folder_path, wallet_address)."""

    def load(self, path: str | Path) -> Dict[str, str]:
        """
        Reads every `key=value` line. Raises OSError if the file cannot be read.

        The line is split on the first `=`, so values may contain `=` and may be
        empty. Lines without `=` or with an empty key are ignored.
        """
        out: Dict[str, str] = {}
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.rstrip("\r\n")
                key, sep, value = line.partition("=")
                if not sep or not key:
                    if line.strip():
                        log.debug("Ignoring config line without key: %r", line)
                    continue
                out[key] = value
        return out

    def save(self, path: str | Path, values: Mapping[str, str]) -> None:
        """Truncates and rewrites the whole file. No merging."""
        with open(path, "w", encoding="utf-8") as f:
            for key, value in values.items():
                f.write(f"{key}={value}\n")

    def update(self, path: str | Path, **values: str) -> Dict[str, str]:
        try:
            current = self.load(path)
        except FileNotFoundError:
            current = {}
        current.update(values)
        self.save(path, current)
        return current


@dataclass(frozen=True)
class WalletConfig:
    seed: str
    comment: str
    folder_path: str
    wallet_address: str = ""

    @property
    def seed_words(self) -> List[str]:
        return self.seed.split()

    @staticmethod
    def from_mapping(values: Mapping[str, str], require_folder: bool = True) -> "WalletConfig":
        seed = values.get("seed", "").strip()
        if not seed:
            raise ConfigError("Missing 'seed' in config. Create a wallet first.")

        folder_path = values.get("folder_path", "").strip()
        if require_folder and not folder_path:
            raise ConfigError("Missing 'folder_path' in config.")

        return WalletConfig(
            seed=seed,
            comment=values.get("comment", ""),
            folder_path=folder_path,
            wallet_address=values.get("wallet_address", "").strip(),
        )
