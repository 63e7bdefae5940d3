"""Skill definition structures."""
from __future__ import annotations

from dataclasses import dataclass

from idlerpg.core.types import SkillKey


@dataclass(slots=True)
class SkillDef:
    """Describes a gold-costed active skill."""

    key: SkillKey
    name: str
    cost: int
    max_cooldown: int
