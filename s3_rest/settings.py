from __future__ import annotations
"""Client configuration and its persistence helpers."""

from dataclasses import asdict, dataclass, fields
import json
from pathlib import Path


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and linear backoff for listing page requests."""

    max_attempts: int = 5
    backoff_step: float = 0.1

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_step < 0:
            raise ValueError("backoff_step must not be negative")

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before the given 1-based attempt."""
        return (attempt - 1) * self.backoff_step


@dataclass
class ClientSettings:
    """Simple container for persistent client settings."""

    hostname: str = ""
    secure: bool = False
    timeout: float = 60.0
    max_pool_connections: int = 10
    max_attempts: int = 5
    backoff_step: float = 0.1

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, backoff_step=self.backoff_step)


_MINIMUMS = {
    "timeout": 0.001,
    "max_pool_connections": 1,
    "max_attempts": 1,
    "backoff_step": 0.0,
}


class SettingsStorage:
    """JSON-backed persistence for :class:`ClientSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3rest_settings.json"
        self._path = Path(storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ClientSettings:
        if not self._path.exists():
            return ClientSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return ClientSettings()
        if not isinstance(data, dict):
            return ClientSettings()

        defaults = ClientSettings()
        values = {}
        for setting in fields(ClientSettings):
            default = getattr(defaults, setting.name)
            values[setting.name] = _coerce(setting.name, data.get(setting.name, default), default)
        return ClientSettings(**values)

    def save(self, settings: ClientSettings) -> None:
        payload = asdict(settings)
        for name, minimum in _MINIMUMS.items():
            payload[name] = max(payload[name], minimum)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return


def _coerce(name: str, value, default):
    if isinstance(default, bool):
        return value if isinstance(value, bool) else default
    if isinstance(default, str):
        return value.strip() if isinstance(value, str) else default
    if isinstance(value, bool):
        return default
    try:
        number = type(default)(value)
    except (TypeError, ValueError):
        return default
    if number < _MINIMUMS.get(name, 0):
        return default
    return number
