"""Runtime settings read from ``STOREFRONT_*`` environment variables."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    store_name: str = "Dietanic"
    currency: str = "INR"
    tax_registered: bool = False
    tax_rate: float = 0.05
    store_state: str = "Maharashtra"
    free_shipping_threshold: float = 500.0
    store_latency: float = 0.0
    poll_interval: float = 5.0
    analytics_measurement_id: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()

        def _get(name, default):
            return env.get(f"STOREFRONT_{name}", default)

        return cls(
            store_name=_get("STORE_NAME", defaults.store_name),
            currency=_get("CURRENCY", defaults.currency),
            tax_registered=str(_get("TAX_REGISTERED", defaults.tax_registered)).lower() in _TRUTHY,
            tax_rate=float(_get("TAX_RATE", defaults.tax_rate)),
            store_state=_get("STORE_STATE", defaults.store_state),
            free_shipping_threshold=float(_get("FREE_SHIPPING_THRESHOLD", defaults.free_shipping_threshold)),
            store_latency=float(_get("STORE_LATENCY", defaults.store_latency)),
            poll_interval=float(_get("POLL_INTERVAL", defaults.poll_interval)),
            analytics_measurement_id=_get("ANALYTICS_MEASUREMENT_ID", defaults.analytics_measurement_id),
        )
