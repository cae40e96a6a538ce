"""Coin reward computation for tasks."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, Field

from src.core import db_client
from src.core.config import Settings


logger = logging.getLogger(__name__)


class RewardSettings(BaseModel):
    """Reward constants in force at a given moment."""

    task_completion_base: float = Field(..., ge=0)
    complexity_multiplier: float = Field(..., ge=0)


def calculate_reward(difficulty_level: float, completion_base: float, complexity_multiplier: float) -> int:
    """Return round(difficulty_level * completion_base * complexity_multiplier).

    Halves round away from zero (2.5 -> 3). The product is computed on the
    decimal representation of each input so 0.1-style floats do not drift
    across a rounding boundary.
    """
    if difficulty_level < 0 or completion_base < 0 or complexity_multiplier < 0:
        msg = (
            f"Reward inputs must be non-negative, got difficulty={difficulty_level} "
            f"base={completion_base} multiplier={complexity_multiplier}"
        )
        raise ValueError(msg)

    product = Decimal(str(difficulty_level)) * Decimal(str(completion_base)) * Decimal(str(complexity_multiplier))
    return int(product.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RewardSettingsProvider:
    """Reads reward constants from the system_settings record, falling back to env settings."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def current(self) -> RewardSettings:
        """Reward settings as of now."""
        record: dict[str, Any] | None = await db_client.get_first_record(collection="system_settings", filter_query="")

        if record:
            return RewardSettings(
                task_completion_base=record["task_completion_base"],
                complexity_multiplier=record["complexity_multiplier"],
            )

        logger.debug("system_settings_not_found_using_env_fallback")
        return RewardSettings(
            task_completion_base=self._settings.task_completion_base,
            complexity_multiplier=self._settings.complexity_multiplier,
        )

    async def reward_for(self, difficulty_level: float) -> int:
        """Compute the reward for a new task with the settings in force right now."""
        current = await self.current()
        return calculate_reward(difficulty_level, current.task_completion_base, current.complexity_multiplier)
