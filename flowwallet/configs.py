"""Service configuration read from environment variables."""

from __future__ import annotations

import enum
import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

_ENV_PREFIX = "FLOW_WALLET_"
_LOCAL = "local"


class _Kind(enum.Enum):
    BOOL = enum.auto()
    INT = enum.auto()
    UINT16 = enum.auto()
    UINT = enum.auto()
    STR = enum.auto()
    LIST = enum.auto()
    DURATION = enum.auto()


_ZERO = {
    _Kind.BOOL: False,
    _Kind.INT: 0,
    _Kind.UINT16: 0,
    _Kind.UINT: 0,
    _Kind.STR: "",
    _Kind.DURATION: timedelta(0),
}


def _setting(kind, default=None, *, required=False, env=None):
    """Declare a setting; its variable defaults to the prefixed upper-case field name."""
    metadata = {"env": env, "kind": kind, "required": required}
    if kind is _Kind.LIST:
        return field(default_factory=list, metadata=metadata)
    return field(default=_ZERO[kind] if default is None else default, metadata=metadata)


class ConfigError(ValueError):
    """Raised when the environment does not describe a valid configuration."""


@dataclass
class Config:
    """All settings of the wallet service."""

    # Feature flags
    disable_raw_transactions: bool = _setting(_Kind.BOOL, env="FLOW_WALLET_DISABLE_RAWTX")
    disable_fungible_tokens: bool = _setting(_Kind.BOOL, env="FLOW_WALLET_DISABLE_FT")
    disable_non_fungible_tokens: bool = _setting(_Kind.BOOL, env="FLOW_WALLET_DISABLE_NFT")
    disable_chain_events: bool = _setting(_Kind.BOOL)

    # Admin account
    admin_address: str = _setting(_Kind.STR, required=True)
    admin_key_index: int = _setting(_Kind.INT, 0)
    admin_key_type: str = _setting(_Kind.STR, _LOCAL)
    admin_private_key: str = _setting(_Kind.STR, required=True)
    # Number of proposal keys on the admin account; more keys allow more
    # transactions to be executed in parallel.
    admin_proposal_key_count: int = _setting(_Kind.UINT16, 1)

    # Keys
    default_key_type: str = _setting(_Kind.STR, _LOCAL)
    default_key_index: int = _setting(_Kind.INT, 0)
    # -1 means the key weight threshold of the chain is used.
    default_key_weight: int = _setting(_Kind.INT, -1)
    default_sign_algo: str = _setting(_Kind.STR, "ECDSA_P256")
    default_hash_algo: str = _setting(_Kind.STR, "SHA3_256")
    # Symmetric key for encrypting stored private keys; must be 32 bytes long.
    encryption_key: str = _setting(_Kind.STR, required=True)

    # Database
    database_dsn: str = _setting(_Kind.STR, "wallet.db")
    database_type: str = _setting(_Kind.STR, "sqlite")

    # Host and chain access
    host: str = _setting(_Kind.STR)
    port: int = _setting(_Kind.INT, 3000)
    access_api_host: str = _setting(_Kind.STR, required=True)
    chain_id: str = _setting(_Kind.STR, "flow-emulator")

    # Templates
    enabled_tokens: list[str] = _setting(_Kind.LIST)

    # Worker pool
    worker_queue_capacity: int = _setting(_Kind.UINT, 1000)
    worker_count: int = _setting(_Kind.UINT, 100)

    # Google KMS
    google_kms_project_id: str = _setting(_Kind.STR)
    google_kms_location_id: str = _setting(_Kind.STR)
    google_kms_key_ring_id: str = _setting(_Kind.STR, env="FLOW_WALLET_GOOGLE_KMS_KEYRING_ID")

    # How long to wait for a transaction seal; zero waits indefinitely.
    transaction_timeout: timedelta = _setting(_Kind.DURATION)


_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}
_SIGNED_INT = re.compile(r"[+-]?\d+")
_UNSIGNED_INT = re.compile(r"\d+")
_INT64 = (-(2**63), 2**63 - 1)
_UINT64 = (0, 2**64 - 1)
_UINT16 = (0, 2**16 - 1)

_DURATION_UNITS = {
    "ns": Decimal("1e-9"),
    "us": Decimal("1e-6"),
    "µs": Decimal("1e-6"),
    "μs": Decimal("1e-6"),
    "ms": Decimal("1e-3"),
    "s": Decimal(1),
    "m": Decimal(60),
    "h": Decimal(3600),
}
_DURATION_PART = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION = re.compile(f"(?:{_DURATION_PART})+")
_DURATION_PARTS = re.compile(_DURATION_PART)


def _parse_bool(raw: str) -> bool:
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f'invalid boolean "{raw}"')


def _parse_integer(raw: str, pattern: re.Pattern, bounds: tuple[int, int]) -> int:
    if pattern.fullmatch(raw) is None:
        raise ValueError(f'invalid integer "{raw}"')
    value = int(raw)
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f'value out of range "{raw}"')
    return value


def _parse_duration(raw: str) -> timedelta:
    text = raw
    negative = False
    if text and text[0] in "+-":
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if _DURATION.fullmatch(text) is None:
        raise ValueError(f'invalid duration "{raw}"')
    try:
        seconds = sum(
            Decimal(number) * _DURATION_UNITS[unit]
            for number, unit in _DURATION_PARTS.findall(text)
        )
    except InvalidOperation as exc:
        raise ValueError(f'invalid duration "{raw}"') from exc
    duration = timedelta(seconds=float(seconds))
    return -duration if negative else duration


_PARSERS = {
    _Kind.BOOL: _parse_bool,
    _Kind.INT: lambda raw: _parse_integer(raw, _SIGNED_INT, _INT64),
    _Kind.UINT: lambda raw: _parse_integer(raw, _UNSIGNED_INT, _UINT64),
    _Kind.UINT16: lambda raw: _parse_integer(raw, _UNSIGNED_INT, _UINT16),
    _Kind.STR: str,
    _Kind.LIST: lambda raw: raw.split(","),
    _Kind.DURATION: _parse_duration,
}


def _convert(kind: _Kind, name: str, raw: str):
    if raw == "":
        return [] if kind is _Kind.LIST else _ZERO[kind]
    try:
        return _PARSERS[kind](raw)
    except ValueError as exc:
        raise ConfigError(f'env: parse error on field "{name}": {exc}') from exc


def _load_env_file(path: str, values: dict[str, str]) -> None:
    file_path = Path(path)
    if not file_path.is_file():
        logger.warning(
            "Could not load environment variables from file %s. "
            "If running inside a docker container this can be ignored.",
            path,
        )
        return
    for key, value in dotenv_values(file_path).items():
        if value is not None:
            values.setdefault(key, value)


def _env_name(spec) -> str:
    return spec.metadata["env"] or _ENV_PREFIX + spec.name.upper()


def parse_config(env_file_path: str | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from environ (the process environment by default).

    Variables from env_file_path fill in values that the environment lacks.
    """
    values = dict(os.environ if environ is None else environ)
    if env_file_path:
        _load_env_file(env_file_path, values)

    settings = {}
    for spec in fields(Config):
        name = _env_name(spec)
        raw = values.get(name)
        if spec.metadata["required"] and not raw:
            raise ConfigError(f'env: environment variable "{name}" should not be empty')
        if raw is None:
            continue
        settings[spec.name] = _convert(spec.metadata["kind"], name, raw)
    return Config(**settings)