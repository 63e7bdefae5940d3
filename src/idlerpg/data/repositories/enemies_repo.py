"""Enemies repository."""
from __future__ import annotations

from typing import Dict

from idlerpg.data.repositories.base import RepositoryBase
from idlerpg.domain.defs import EnemyDef


class EnemiesRepository(RepositoryBase[EnemyDef]):
    """Loads and validates enemy templates."""

    def __init__(self, base_path=None) -> None:
        super().__init__("enemies.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, EnemyDef]:
        enemies: Dict[str, EnemyDef] = {}
        for raw_id, payload in raw.items():
            context = f"enemy '{raw_id}'"
            enemy_data = self._require_mapping(payload, context)
            required_fields = {"name", "tier", "max_health", "attack", "exp_reward", "gold_reward"}
            self._assert_required(enemy_data, required_fields, context)

            defense_raw = enemy_data.get("defense")
            enemies[raw_id] = EnemyDef(
                id=raw_id,
                name=self._require_str(enemy_data["name"], f"{context} name"),
                tier=self._require_int(enemy_data["tier"], f"{context} tier", minimum=0),
                base_max_health=self._require_int(enemy_data["max_health"], f"{context} max_health", minimum=1),
                base_attack=self._require_int(enemy_data["attack"], f"{context} attack", minimum=0),
                base_exp_reward=self._require_int(enemy_data["exp_reward"], f"{context} exp_reward", minimum=0),
                base_gold_reward=self._require_int(enemy_data["gold_reward"], f"{context} gold_reward", minimum=0),
                defense=(
                    None
                    if defense_raw is None
                    else self._require_int(defense_raw, f"{context} defense", minimum=0)
                ),
            )
        return enemies

    def by_tier(self) -> list[EnemyDef]:
        """Return templates ordered trivial to boss-tier."""
        return sorted(self.all(), key=lambda enemy: (enemy.tier, enemy.id))
