"""Reporter settings: typed record, repositories and the defaults-merged accessor."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping, Protocol

from django.conf import settings as django_settings
from django.dispatch import Signal

# Sent after Settings.update() persisted a new map. Arguments: old, new.
settings_updated = Signal()

REQUIRED_FIELDS: tuple[str, ...] = (
    "customer_id",
    "conversion_action_id",
    "developer_token",
    "client_id",
    "client_secret",
    "refresh_token",
)

SECRET_FIELDS: frozenset[str] = frozenset({"developer_token", "client_secret", "refresh_token"})

CURRENCY_CODES: frozenset[str] = frozenset({
    "AED", "ARS", "AUD", "BGN", "BHD", "BND", "BOB", "BRL", "CAD",
    "CHF", "CLP", "CNY", "COP", "CZK", "DKK", "EGP", "EUR", "GBP",
    "HKD", "HRK", "HUF", "IDR", "ILS", "INR", "ISK", "JPY", "KRW",
    "KWD", "LKR", "MAD", "MXN", "MYR", "NGN", "NOK", "NZD", "PEN",
    "PHP", "PKR", "PLN", "QAR", "RON", "RUB", "SAR", "SEK", "SGD",
    "THB", "TRY", "TWD", "UAH", "USD", "VND", "ZAR",
})


class GadsConfigError(RuntimeError):
    """Raised when supplied reporter configuration is malformed."""


@dataclass(frozen=True)
class GadsSettings:
    """Every reporter setting with its default value."""

    customer_id: str = ""
    conversion_action_id: str = ""
    conversion_action_name: str = ""
    conversion_action_category: str = "SUBMIT_LEAD_FORM"
    developer_token: str = ""
    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    login_customer_id: str = ""
    conversion_value: str = "0"
    currency_code: str = "SEK"
    enable_logging: str = ""

    @classmethod
    def keys(cls) -> tuple[str, ...]:
        return tuple(field.name for field in fields(cls))

    @classmethod
    def defaults(cls) -> dict[str, str]:
        return asdict(cls())

    def as_dict(self) -> dict[str, str]:
        return asdict(self)

    @property
    def logging_enabled(self) -> bool:
        return bool(self.enable_logging)

    def missing_required(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]


class SettingsRepository(Protocol):
    def load(self) -> Mapping[str, Any]:
        ...

    def save(self, values: Mapping[str, str]) -> None:
        ...


class DatabaseSettingsRepository:
    """Stores the whole settings map as one JSON value in ``GadsOption``."""

    def __init__(self, option_key: str | None = None) -> None:
        self.option_key = option_key or getattr(django_settings, "GADS_SETTINGS_OPTION_KEY", "gads_settings")

    def load(self) -> Mapping[str, Any]:
        from apps.gads.models import GadsOption

        row = GadsOption.objects.filter(key=self.option_key).values_list("value", flat=True).first()
        return row if isinstance(row, dict) else {}

    def save(self, values: Mapping[str, str]) -> None:
        from apps.gads.models import GadsOption

        GadsOption.objects.update_or_create(key=self.option_key, defaults={"value": dict(values)})


class InMemorySettingsRepository:
    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self.values: dict[str, Any] = dict(initial or {})
        self.loads = 0

    def load(self) -> Mapping[str, Any]:
        self.loads += 1
        return dict(self.values)

    def save(self, values: Mapping[str, str]) -> None:
        self.values = dict(values)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


class Settings:
    """Defaults-merged read/write access to the reporter settings."""

    def __init__(self, repository: SettingsRepository | None = None) -> None:
        self.repository = repository or DatabaseSettingsRepository()

    def get_all(self) -> dict[str, str]:
        stored = self.repository.load() or {}
        merged = GadsSettings.defaults()
        for key in merged:
            if key in stored:
                merged[key] = _as_text(stored[key])
        return merged

    def get(self, key: str, default: str = "") -> str:
        return self.get_all().get(key, default)

    def load(self) -> GadsSettings:
        return GadsSettings(**self.get_all())

    def update(self, values: Mapping[str, Any]) -> dict[str, str]:
        """Merge ``values`` into the stored map; unknown keys are discarded."""

        current = self.get_all()
        merged = dict(current)
        for key, value in values.items():
            if key in merged:
                merged[key] = _as_text(value)
        self.repository.save(merged)
        settings_updated.send(sender=self, old=current, new=merged)
        return merged

    def is_configured(self) -> bool:
        return not self.load().missing_required()


def _format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def sanitize_settings(values: Mapping[str, Any]) -> dict[str, str]:
    """Normalise operator input before it is stored."""

    clean: dict[str, str] = {}
    for key, value in values.items():
        clean[key] = value.strip() if isinstance(value, str) else _as_text(value)

    for key in ("customer_id", "login_customer_id"):
        if key in clean:
            clean[key] = clean[key].replace("-", "")

    if "conversion_value" in clean:
        try:
            number = float(clean["conversion_value"])
        except ValueError:
            number = -1.0
        clean["conversion_value"] = _format_number(number) if math.isfinite(number) and number >= 0 else "0"

    if "currency_code" in clean:
        code = clean["currency_code"].upper()
        clean["currency_code"] = code if code in CURRENCY_CODES else GadsSettings.currency_code

    return clean
