"""Unit tests for coin reward computation."""

import pytest

from src.core.config import Settings
from src.modules.tasks.rewards import RewardSettingsProvider, calculate_reward


@pytest.mark.unit
class TestCalculateReward:
    """Tests for calculate_reward function."""

    def test_documented_example(self):
        assert calculate_reward(3, 10, 1.5) == 45

    def test_rounds_half_away_from_zero(self):
        assert calculate_reward(0.25, 10, 1) == 3
        assert calculate_reward(0.5, 1, 1) == 1
        assert calculate_reward(1.5, 1, 1) == 2

    def test_rounds_down_below_half(self):
        assert calculate_reward(0.24, 10, 1) == 2

    def test_decimal_inputs_do_not_drift(self):
        """0.1 * 3 * 5 is 1.5 exactly, not 1.4999..."""
        assert calculate_reward(0.1, 3, 5) == 2

    def test_zero_multiplier_gives_zero(self):
        assert calculate_reward(5, 10, 0) == 0

    def test_negative_input_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            calculate_reward(-1, 10, 1)


@pytest.mark.unit
class TestRewardSettingsProvider:
    """Tests for reading reward settings."""

    async def test_falls_back_to_env_settings(self, patched_db):
        provider = RewardSettingsProvider(Settings(task_completion_base=7, complexity_multiplier=2))

        current = await provider.current()

        assert current.task_completion_base == 7
        assert current.complexity_multiplier == 2
        assert await provider.reward_for(2) == 28

    async def test_system_settings_record_wins(self, patched_db):
        await patched_db.create_record(
            collection="system_settings",
            data={"task_completion_base": 10, "complexity_multiplier": 1.5},
        )
        provider = RewardSettingsProvider(Settings(task_completion_base=1, complexity_multiplier=1))

        assert await provider.reward_for(3) == 45
