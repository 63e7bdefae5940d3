from __future__ import annotations

import pytest

from idlerpg.core.rng import RNG
from idlerpg.data.repositories import EnemiesRepository
from idlerpg.domain.enemy_scaling import scale_enemy_stats
from idlerpg.services.enemy_catalog import EnemyCatalog
from idlerpg.services.errors import ConfigurationError
from tests.helpers.builders import make_enemy_def


def _catalog(**kwargs) -> EnemyCatalog:
    return EnemyCatalog(EnemiesRepository().by_tier(), **kwargs)


def test_level_25_player_meets_the_third_template() -> None:
    catalog = _catalog()

    assert catalog.template_index(25) == 2
    assert catalog.spawn(25, RNG(1)).name == "Bandit"


@pytest.mark.parametrize(("player_level", "expected"), [(1, 0), (9, 0), (10, 1), (39, 3), (40, 4), (300, 4)])
def test_template_index_is_clamped(player_level: int, expected: int) -> None:
    assert _catalog().template_index(player_level) == expected


def test_enemy_level_is_jittered_around_player_level() -> None:
    catalog = _catalog()
    rng = RNG(8)
    levels = {catalog.roll_enemy_level(20, rng) for _ in range(300)}

    assert min(levels) >= 15
    assert max(levels) <= 24
    assert len(levels) > 1


def test_enemy_level_never_drops_below_one() -> None:
    catalog = _catalog()
    rng = RNG(8)
    assert all(catalog.roll_enemy_level(1, rng) >= 1 for _ in range(100))


def test_zero_jitter_matches_player_level() -> None:
    enemy = _catalog(level_jitter=0).spawn(3, RNG(1))
    assert enemy.level == 3


def test_spawned_enemy_is_scaled_and_at_full_health() -> None:
    enemy = _catalog(level_jitter=0).spawn(3, RNG(1))

    assert enemy.name == "Wild Boar"
    assert enemy.stats.max_health == 60
    assert enemy.stats.health == 60
    assert enemy.stats.attack == 9
    assert enemy.stats.defense == 2
    assert enemy.exp_reward == 12
    assert enemy.gold_reward == 6


def test_explicit_template_defense_is_kept() -> None:
    stats = scale_enemy_stats(make_enemy_def(attack=20, defense=7), enemy_level=5)
    assert stats.defense == 7
    assert stats.attack == 28


def test_empty_catalog_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        EnemyCatalog([])


def test_non_positive_divisor_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        EnemyCatalog([make_enemy_def()], level_divisor=0)
