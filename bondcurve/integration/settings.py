"""
Exchange settings: fee rate, administrator and curve parameters.

Settings are read once at start-up (YAML file or plain mapping) and are
immutable afterwards. Example file:

    fee_rate: 0.01
    admin: "treasury-admin"
    curve:
      mode_threshold: 1000000000000000
      initial_pool_lamports: 10000000
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from ..core.params import DEFAULT_PARAMS, CurveParams, params_from_mapping


_TOP_LEVEL_KEYS = frozenset({"fee_rate", "admin", "curve"})


@dataclass(frozen=True)
class ExchangeSettings:
    fee_rate: float
    admin: str
    params: CurveParams = field(default_factory=lambda: DEFAULT_PARAMS)

    def __post_init__(self) -> None:
        if not isinstance(self.fee_rate, (int, float)) or isinstance(self.fee_rate, bool):
            raise TypeError("fee_rate must be a number")
        if not (0.0 <= float(self.fee_rate) < 1.0):
            raise ValueError(f"fee_rate must be in [0, 1): {self.fee_rate}")
        if not isinstance(self.admin, str) or not self.admin:
            raise ValueError("admin must be a non-empty string")


def settings_from_mapping(data: Mapping[str, Any]) -> ExchangeSettings:
    """Validate and build settings from a decoded mapping."""
    if not isinstance(data, Mapping):
        raise ValueError("settings must be a mapping")
    unknown = sorted(set(data) - _TOP_LEVEL_KEYS)
    if unknown:
        raise ValueError(f"unknown settings key(s): {', '.join(unknown)}")
    if "fee_rate" not in data or "admin" not in data:
        raise ValueError("settings require 'fee_rate' and 'admin'")

    curve = data.get("curve") or {}
    if not isinstance(curve, Mapping):
        raise ValueError("'curve' must be a mapping")

    return ExchangeSettings(
        fee_rate=float(data["fee_rate"]),
        admin=str(data["admin"]),
        params=params_from_mapping(curve),
    )


def load_settings(path: Union[str, Path]) -> ExchangeSettings:
    """Load settings from a YAML file."""
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid settings YAML in {p}: {exc}") from exc
    if data is None:
        raise ValueError(f"settings file is empty: {p}")
    return settings_from_mapping(data)
