from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

SETTING_ALIASES = {
    "rnu": "relativenumber",
    "rn": "relativenumber",
    "nu": "number",
    "st": "seektime",
    "stl": "seektimelarge",
    "ss": "speedstep",
    "vs": "volumestep",
}

TRUE_VALUES = {"true", "1", "on", "yes"}
FALSE_VALUES = {"false", "0", "off", "no"}


@dataclass
class Settings:
    """User tunables, persisted as flat key/value JSON."""
    relativenumber: bool = False
    number: bool = True
    seektime: float = 5
    seektimelarge: float = 30
    speedstep: float = 0.25
    volumestep: float = 0.05

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Build settings from saved data, ignoring unknown keys and bad values."""
        settings = cls()
        for key, value in data.items():
            name = resolve_setting_name(key)
            if name is None:
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            try:
                setattr(settings, name, settings._coerce(name, value))
            except ValueError as e:
                logger.warning(f"Ignoring invalid value for {name}: {value} ({e})")
        return settings

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def is_bool(self, name: str) -> bool:
        return isinstance(getattr(self, name), bool)

    def display(self, name: str) -> str:
        value = getattr(self, name)
        if isinstance(value, bool):
            return "true" if value else "false"
        return f"{value:g}"

    def summary(self) -> str:
        return ", ".join(f"{f.name}={self.display(f.name)}" for f in fields(self))

    def apply(self, expression: str) -> Tuple[str, bool]:
        """Apply a `:set` argument.

        Supports `opt`, `noopt`, `opt!`, `opt?` and `opt=value`, with short
        aliases. Returns the status message and whether anything changed.
        """
        expr = expression.strip()

        if "=" in expr:
            raw_name, raw_value = (part.strip() for part in expr.split("=", 1))
            name = resolve_setting_name(raw_name)
            if name is None:
                return f"Unknown setting: {raw_name}", False
            try:
                value = self._coerce(name, raw_value)
            except ValueError:
                return f"Invalid value for {name}: {raw_value}", False
            setattr(self, name, value)
            return f"{name}={self.display(name)}", True

        if expr.endswith("?"):
            name = resolve_setting_name(expr[:-1])
            if name is None:
                return f"Unknown setting: {expr[:-1]}", False
            return f"{name}={self.display(name)}", False

        if expr.endswith("!"):
            name = resolve_setting_name(expr[:-1])
            if name is None:
                return f"Unknown setting: {expr[:-1]}", False
            if not self.is_bool(name):
                return f"Cannot toggle {name}; use :set {name}=<value>", False
            setattr(self, name, not getattr(self, name))
            return f"{name} {'enabled' if getattr(self, name) else 'disabled'}", True

        name = resolve_setting_name(expr)
        if name is not None:
            if not self.is_bool(name):
                return f"{name}={self.display(name)}", False
            setattr(self, name, True)
            return f"{name} enabled", True

        if expr.startswith("no"):
            name = resolve_setting_name(expr[2:])
            if name is not None and self.is_bool(name):
                setattr(self, name, False)
                return f"{name} disabled", True

        return f"Unknown setting: {expr}", False

    def _coerce(self, name: str, value: Any) -> Any:
        current = getattr(self, name)
        if isinstance(current, bool):
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in TRUE_VALUES:
                return True
            if text in FALSE_VALUES:
                return False
            raise ValueError(f"expected a boolean, got {value!r}")
        if isinstance(value, bool):
            raise ValueError(f"expected a number, got {value!r}")
        number = float(value)
        if number < 0:
            raise ValueError("must not be negative")
        return number


def resolve_setting_name(name: str) -> Optional[str]:
    """Resolve a setting name or alias to its canonical name."""
    name = name.strip().lower()
    name = SETTING_ALIASES.get(name, name)
    if name in {f.name for f in fields(Settings)}:
        return name
    return None
