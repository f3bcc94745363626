from __future__ import annotations

import os
from dataclasses import dataclass, asdict

from dotenv import load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class BrokerSettings:
    """Per-broker runtime config, overridable through the environment."""

    log_level: str = "WARNING"
    trace_dispatch: bool = False  # log every publish with its match count

    @classmethod
    def from_env(cls) -> "BrokerSettings":
        # Load .env first so PUBSUB_* values defined there are visible
        load_dotenv(".env", override=False)
        return cls(
            log_level=os.getenv("PUBSUB_LOG_LEVEL", cls.log_level),
            trace_dispatch=os.getenv("PUBSUB_TRACE_DISPATCH", "").strip().lower() in _TRUTHY,
        )

    def to_dict(self):
        return asdict(self)
