"""Skills repository."""
from __future__ import annotations

from typing import Dict, get_args

from idlerpg.core.types import SkillKey
from idlerpg.data.errors import DataValidationError
from idlerpg.data.repositories.base import RepositoryBase
from idlerpg.domain.defs import SkillDef

_SKILL_KEYS = set(get_args(SkillKey))


class SkillsRepository(RepositoryBase[SkillDef]):
    """Loads the active skill catalog keyed by effect."""

    def __init__(self, base_path=None) -> None:
        super().__init__("skills.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, SkillDef]:
        skills: Dict[str, SkillDef] = {}
        for key, payload in raw.items():
            context = f"skill '{key}'"
            if key not in _SKILL_KEYS:
                raise DataValidationError(f"{context} is not one of {sorted(_SKILL_KEYS)}.")
            skill_data = self._require_mapping(payload, context)
            self._assert_required(skill_data, {"name", "cost", "max_cooldown"}, context)
            skills[key] = SkillDef(
                key=key,
                name=self._require_str(skill_data["name"], f"{context} name"),
                cost=self._require_int(skill_data["cost"], f"{context} cost", minimum=1),
                max_cooldown=self._require_int(skill_data["max_cooldown"], f"{context} max_cooldown", minimum=0),
            )
        return skills
