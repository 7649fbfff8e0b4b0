"""Runtime configuration for matches, players and the remote protocol.

Every field can be overridden from a ``SALVO_*`` environment variable so that
the test-suite and the CLI can tune deadlines and grid sizes without code
changes.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

from salvo.engine.ship import ShipType

DEFAULT_RESPONSE_TIMEOUT = 2.0
DEFAULT_PLACEMENT_MAX_ATTEMPTS = 10_000


def _default_fleet() -> dict[ShipType, int]:
    return {ship_type: 1 for ship_type in ShipType}


def parse_fleet_spec(text: str) -> dict[ShipType, int]:
    """Parse ``"CARRIER=1,SUBMARINE=2"`` into a fleet specification."""
    spec: dict[ShipType, int] = {}
    for part in text.split(","):
        if not part.strip():
            continue
        if "=" not in part:
            raise ValueError(f"Expected TYPE=COUNT, got {part!r}.")
        key, value = part.split("=", 1)
        try:
            ship_type = ShipType[key.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown ship type {key.strip()!r}.") from exc
        spec[ship_type] = int(value)
    return spec


class GameConfig(BaseModel):
    """Settings shared by the referee, the players and the network adapter."""

    response_timeout: float = Field(default=DEFAULT_RESPONSE_TIMEOUT, gt=0)
    placement_max_attempts: int | None = DEFAULT_PLACEMENT_MAX_ATTEMPTS
    height: int = Field(default=10, gt=0)
    width: int = Field(default=10, gt=0)
    fleet_spec: dict[ShipType, int] = Field(default_factory=_default_fleet)
    max_rounds: int | None = None
    host: str = "127.0.0.1"
    port: int = 35001

    @field_validator("placement_max_attempts")
    @classmethod
    def _zero_means_unbounded(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            return None
        return value

    @field_validator("fleet_spec")
    @classmethod
    def _non_negative_counts(cls, value: dict[ShipType, int]) -> dict[ShipType, int]:
        if any(count < 0 for count in value.values()):
            raise ValueError("Ship counts must not be negative.")
        return value

    @property
    def round_limit(self) -> int:
        return self.max_rounds if self.max_rounds is not None else self.height * self.width

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameConfig":
        """Construct config from ``SALVO_*`` env vars; ``overrides`` win over both."""

        data: Dict[str, Any] = {}
        scalar_fields = {
            "response_timeout": "SALVO_RESPONSE_TIMEOUT",
            "height": "SALVO_HEIGHT",
            "width": "SALVO_WIDTH",
            "max_rounds": "SALVO_MAX_ROUNDS",
            "host": "SALVO_HOST",
            "port": "SALVO_PORT",
        }
        for field, env_name in scalar_fields.items():
            value = os.getenv(env_name)
            if value is not None:
                data[field] = value

        attempts = os.getenv("SALVO_PLACEMENT_MAX_ATTEMPTS")
        if attempts is not None:
            data["placement_max_attempts"] = None if attempts.strip().lower() == "none" else attempts

        fleet = os.getenv("SALVO_FLEET")
        if fleet:
            data["fleet_spec"] = parse_fleet_spec(fleet)

        data.update(overrides)
        return cls(**data)


@lru_cache(maxsize=1)
def load_game_config() -> GameConfig:
    """Load and cache game config from the environment."""

    return GameConfig.from_env()
