"""
Whitelist Sync - Settings

Loaded once per process from the maintainer's secrets file (JSON, camelCase
keys). Environment variables named after the fields fill in anything the
file leaves out.
"""

import json
import logging
from pathlib import Path

from eth_account import Account
from eth_utils import is_hex_address
from pydantic import AliasChoices, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from whitelist_sync.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SECRET_FILE = Path("./secret.json")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Secrets
    MAINTAINER_SECRET_KEY: SecretStr = Field(
        validation_alias=AliasChoices("maintainerSecretKey", "MAINTAINER_SECRET_KEY"),
    )
    SECRET_COOKIE: SecretStr = Field(
        validation_alias=AliasChoices("secretCookie", "SECRET_COOKIE"),
    )

    # Endpoints
    NODE_URL: str = Field(validation_alias=AliasChoices("nodeUrl", "NODE_URL"))
    CONTRACT_ADDRESS: str = Field(
        validation_alias=AliasChoices("contractAddress", "CONTRACT_ADDRESS"),
    )
    LAMBDA_URL: str = Field(validation_alias=AliasChoices("lambdaUrl", "LAMBDA_URL"))

    # Reconciliation policy
    BATCH_CAP: int = Field(10, ge=1)
    GAS_PRICE_MARGIN_PERCENT: int = Field(10, ge=0)
    CONFIRMATIONS: int = Field(1, ge=1)

    # Transport
    RECEIPT_TIMEOUT_SECONDS: float = Field(600.0, gt=0)
    RECEIPT_POLL_SECONDS: float = Field(2.0, gt=0)
    HTTP_TIMEOUT_SECONDS: float = Field(30.0, gt=0)

    @field_validator("MAINTAINER_SECRET_KEY")
    @classmethod
    def _check_secret_key(cls, v: SecretStr) -> SecretStr:
        key = v.get_secret_value()
        key = key[2:] if key.startswith("0x") else key
        try:
            # rejects zero and anything at or past the secp256k1 order
            valid = len(key) == 64 and Account.from_key(bytes.fromhex(key)) is not None
        except ValueError:
            valid = False
        if not valid:
            raise ValueError("Maintainer key must be 32 bytes of hex")
        return v

    @field_validator("CONTRACT_ADDRESS")
    @classmethod
    def _check_contract_address(cls, v: str) -> str:
        if not is_hex_address(v):
            raise ValueError(f"Not a valid contract address: {v!r}")
        return v

    @field_validator("NODE_URL", "LAMBDA_URL")
    @classmethod
    def _check_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Expected an http(s) URL, got {v!r}")
        return v


def load_settings(secret_file: Path = DEFAULT_SECRET_FILE) -> Settings:
    """
    Read and validate the secrets file.

    Raises:
        ConfigError: file missing, not a JSON object, or a field is
            missing/malformed. Nothing has touched the network yet.
    """
    path = Path(secret_file)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Secrets file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not deserialize secrets file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Secrets file {path} must contain a JSON object")

    try:
        settings = Settings(**raw)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigError(f"Invalid secrets file {path}: {fields}") from e

    logger.debug(f"[CONFIG] Loaded settings from {path}")
    return settings

