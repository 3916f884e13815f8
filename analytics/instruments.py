"""analytics/instruments.py — Futures point values and commission estimates.

Provides InstrumentTable, which:
 - Maps a contract symbol to its instrument root and dollar-per-point value.
 - Estimates a per-contract round-turn commission for a symbol.
 - Loads overrides from ``config/instruments.yaml`` (``point_values`` and
   ``commissions`` mappings) layered on top of the built-in defaults.

Usage example::

    table = InstrumentTable.from_yaml("config/instruments.yaml")
    table.get_point_value("F.US.ESZ25")   # 50.0
    table.estimate_commission("/MNQ")     # 1.25
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

LOGGER = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "instruments.yaml"

# Dollar value of a one-point move, keyed by instrument root.
DEFAULT_POINT_VALUES: dict[str, float] = {
    "ES": 50.0,
    "NQ": 20.0,
    "YM": 5.0,
    "RTY": 50.0,
    "MES": 5.0,
    "MNQ": 2.0,
    "MYM": 0.5,
    "M2K": 5.0,
    "GC": 100.0,
    "SI": 5000.0,
    "CL": 1000.0,
    "NG": 10000.0,
    "ZB": 1000.0,
    "ZN": 1000.0,
}

# Per-contract commission estimates, keyed by instrument root.
DEFAULT_COMMISSIONS: dict[str, float] = {
    # Equity index
    "ES": 2.50, "NQ": 2.50, "YM": 2.50, "RTY": 2.50,
    # Micro equity index
    "MES": 1.25, "MNQ": 1.25, "MYM": 1.25, "M2K": 1.25,
    # Metals / energy
    "GC": 2.85, "SI": 2.85, "CL": 2.85, "NG": 2.85,
    # Currencies
    "6E": 2.85, "6B": 2.85, "6J": 2.85, "6A": 2.85, "6C": 2.85, "6S": 2.85,
    # Rates
    "ZN": 2.85, "ZB": 2.85, "ZF": 2.85, "ZT": 2.85,
    # Grains
    "ZC": 2.85, "ZS": 2.85, "ZW": 2.85,
    # Micro metals / energy
    "MGC": 1.50, "SIL": 1.50, "MCL": 1.50,
    # Crypto
    "BTC": 10.00, "ETH": 10.00, "MBT": 2.50,
}

DEFAULT_COMMISSION = 2.50
DEFAULT_POINT_VALUE = 1.0


def instrument_root(symbol: str) -> str:
    """Reduce a contract symbol to its root.

    Takes the last dot-separated segment, strips trailing digits, then drops a
    single trailing uppercase month code: ``F.US.ESZ25`` → ``ES``,
    ``F.US.M2KZ25`` → ``M2K``, ``6EZ25`` → ``6E``.
    """
    segment = symbol.split(".")[-1]
    without_year = re.sub(r"\d+$", "", segment)
    return re.sub(r"[A-Z]$", "", without_year)


def _normalise(symbol: str) -> str:
    return re.sub(r"^[/@]", "", symbol.strip().upper())


def _coerce_table(raw: Any, section: str, path: Path) -> dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"{path}: '{section}' must be a mapping of symbol to number")
    table: dict[str, float] = {}
    for key, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{path}: '{section}.{key}' must be numeric, got {value!r}")
        table[_normalise(str(key))] = float(value)
    return table


class InstrumentTable:
    """Point-value and commission lookups with optional overrides.

    Parameters
    ----------
    point_values:
        Overrides merged on top of :data:`DEFAULT_POINT_VALUES`.
    commissions:
        Overrides merged on top of :data:`DEFAULT_COMMISSIONS`.
    default_commission:
        Fallback when no commission entry matches.
    """

    def __init__(
        self,
        point_values: Optional[Mapping[str, float]] = None,
        commissions: Optional[Mapping[str, float]] = None,
        default_commission: float = DEFAULT_COMMISSION,
    ) -> None:
        self._point_values: dict[str, float] = dict(DEFAULT_POINT_VALUES)
        self._point_values.update(point_values or {})
        self._commissions: dict[str, float] = dict(DEFAULT_COMMISSIONS)
        self._commissions.update(commissions or {})
        self._default_commission = float(default_commission)

    @classmethod
    def from_yaml(cls, config_path: str | Path | None = None) -> "InstrumentTable":
        """Load overrides from YAML; a missing file falls back to defaults.

        Raises ``ValueError`` when the file exists but is malformed.
        """
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        if not path.exists():
            LOGGER.warning("Instrument config %s not found — using built-in defaults", path)
            return cls()

        try:
            with path.open() as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"{path}: invalid YAML ({exc})") from exc

        if not isinstance(raw, Mapping):
            raise ValueError(f"{path}: top level must be a mapping")

        default_commission = raw.get("default_commission", DEFAULT_COMMISSION)
        if isinstance(default_commission, bool) or not isinstance(default_commission, (int, float)):
            raise ValueError(f"{path}: 'default_commission' must be numeric")

        table = cls(
            point_values=_coerce_table(raw.get("point_values"), "point_values", path),
            commissions=_coerce_table(raw.get("commissions"), "commissions", path),
            default_commission=default_commission,
        )
        LOGGER.info("Loaded instrument config from %s", path)
        return table

    @property
    def point_values(self) -> dict[str, float]:
        return dict(self._point_values)

    def get_point_value(self, symbol: str) -> float:
        """Dollar value per point for *symbol*; 1.0 for unknown roots."""
        return self._point_values.get(instrument_root(symbol), DEFAULT_POINT_VALUE)

    def estimate_commission(self, symbol: str) -> float:
        """Per-contract commission estimate for *symbol*.

        Lookup order: exact symbol, symbol without a leading ``/`` or ``@``,
        the ``/``-prefixed form, then the instrument root.  Falls back to the table default.
        """
        if not symbol:
            return self._default_commission
        normalised = _normalise(symbol)
        for key in (symbol.strip(), normalised, f"/{normalised}"):
            if key in self._commissions:
                return self._commissions[key]
        root = instrument_root(normalised)
        return self._commissions.get(root, self._default_commission)


DEFAULT_INSTRUMENTS = InstrumentTable()


def get_point_value(symbol: str) -> float:
    """Point value from the built-in table."""
    return DEFAULT_INSTRUMENTS.get_point_value(symbol)
