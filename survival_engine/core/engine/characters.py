"""Character and NPC state consumed by the resolvers.

Sheets are owned by the session. The skill check resolver only reads them;
the combat orchestrator applies damage, stress and injuries through the
methods here.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from ..data.data_structures import require_list, require_mapping
from ..data.game_enums import (
    Attribute,
    CombatantType,
    SKILL_ATTRIBUTES,
    Skill,
    SkillExpertise,
)
from ..injuries import CriticalInjuryRecord

ANCHOR_FEAR_DICE = 2


@dataclass
class Bonus:
    """A talent or equipment bonus, optionally tied to one skill."""
    name: str
    value: int
    skill: Optional[Skill] = None

    def applies_to(self, skill: Skill) -> bool:
        return self.skill is not None and self.skill == skill

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value, "skill": self.skill.name if self.skill else None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Bonus":
        data = require_mapping(data, "bonus")
        skill = data.get("skill")
        value = data["value"]
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("Bonus value must be an integer")
        return cls(name=str(data["name"]), value=value, skill=Skill[skill] if skill else None)


@dataclass
class PlayerCharacter:
    """Player character sheet."""
    id: str
    name: str
    attributes: dict[Attribute, int] = field(default_factory=lambda: {a: 2 for a in Attribute})
    skills: dict[Skill, int] = field(default_factory=dict)
    stress: int = 0
    health: int = 3
    max_health: int = 3
    bonuses: list[Bonus] = field(default_factory=list)
    critical_injuries: list[CriticalInjuryRecord] = field(default_factory=list)
    pc_anchor: Optional[str] = None
    npc_anchor: Optional[str] = None
    armor: int = 0
    weapon_damage: int = 1

    @property
    def kind(self) -> CombatantType:
        return CombatantType.PC

    @property
    def is_broken(self) -> bool:
        return self.health <= 0

    @property
    def anchor_count(self) -> int:
        return sum(1 for anchor in (self.pc_anchor, self.npc_anchor) if anchor)

    def attribute(self, attribute: Attribute) -> int:
        return self.attributes.get(attribute, 0)

    def skill_rank(self, skill: Skill) -> int:
        return self.skills.get(skill, 0)

    def bonus_for(self, skill: Skill) -> int:
        """Total of the bonuses tagged with this skill."""
        return sum(bonus.value for bonus in self.bonuses if bonus.applies_to(skill))

    def base_dice_for(self, skill: Skill) -> int:
        return self.attribute(SKILL_ATTRIBUTES[skill]) + self.skill_rank(skill) + self.bonus_for(skill)

    def add_stress(self, amount: int, max_stress: int) -> int:
        self.stress = max(0, min(max_stress, self.stress + amount))
        return self.stress

    def take_damage(self, amount: int) -> int:
        self.health = max(0, self.health - max(0, amount))
        return self.health

    def heal(self, amount: int) -> int:
        self.health = min(self.max_health, self.health + max(0, amount))
        return self.health

    def add_injury(self, injury: CriticalInjuryRecord) -> None:
        self.critical_injuries.append(injury)

    def recover_injury(self, name: str) -> bool:
        """Remove the first injury with this name."""
        for index, injury in enumerate(self.critical_injuries):
            if injury.name == name:
                del self.critical_injuries[index]
                return True
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "attributes": {a.name: v for a, v in self.attributes.items()},
            "skills": {s.name: v for s, v in self.skills.items()},
            "stress": self.stress,
            "health": self.health,
            "max_health": self.max_health,
            "bonuses": [b.to_dict() for b in self.bonuses],
            "critical_injuries": [i.to_dict() for i in self.critical_injuries],
            "pc_anchor": self.pc_anchor,
            "npc_anchor": self.npc_anchor,
            "armor": self.armor,
            "weapon_damage": self.weapon_damage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerCharacter":
        data = require_mapping(data, "character")
        attributes = require_mapping(data["attributes"], "attributes")
        skills = require_mapping(data["skills"], "skills")
        bonuses = require_list(data.get("bonuses", []), "bonuses")
        injuries = require_list(data.get("critical_injuries", []), "critical_injuries")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            attributes={Attribute[k]: _non_negative(v, k) for k, v in attributes.items()},
            skills={Skill[k]: _non_negative(v, k) for k, v in skills.items()},
            stress=_non_negative(data["stress"], "stress"),
            health=_non_negative(data["health"], "health"),
            max_health=_non_negative(data["max_health"], "max_health"),
            bonuses=[Bonus.from_dict(b) for b in bonuses],
            critical_injuries=[CriticalInjuryRecord.from_dict(i) for i in injuries],
            pc_anchor=data.get("pc_anchor"),
            npc_anchor=data.get("npc_anchor"),
            armor=_non_negative(data.get("armor", 0), "armor"),
            weapon_damage=_non_negative(data.get("weapon_damage", 1), "weapon_damage"),
        )


@dataclass
class NonPlayerCharacter:
    """NPC sheet. NPCs roll a flat pool per expertise tier and never take stress."""
    id: str
    name: str
    expertise: dict[Skill, SkillExpertise] = field(default_factory=dict)
    health: int = 3
    max_health: int = 3
    armor: int = 0
    weapon_damage: int = 1

    @property
    def kind(self) -> CombatantType:
        return CombatantType.NPC

    @property
    def stress(self) -> int:
        return 0

    @property
    def is_broken(self) -> bool:
        return self.health <= 0

    def expertise_for(self, skill: Skill) -> SkillExpertise:
        return self.expertise.get(skill, SkillExpertise.NONE)

    def base_dice_for(self, skill: Skill) -> int:
        return self.expertise_for(skill).value

    def take_damage(self, amount: int) -> int:
        self.health = max(0, self.health - max(0, amount))
        return self.health

    def heal(self, amount: int) -> int:
        self.health = min(self.max_health, self.health + max(0, amount))
        return self.health

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "expertise": {s.name: e.name for s, e in self.expertise.items()},
            "health": self.health,
            "max_health": self.max_health,
            "armor": self.armor,
            "weapon_damage": self.weapon_damage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NonPlayerCharacter":
        data = require_mapping(data, "npc")
        expertise = require_mapping(data["expertise"], "expertise")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            expertise={Skill[k]: SkillExpertise[v] for k, v in expertise.items()},
            health=_non_negative(data["health"], "health"),
            max_health=_non_negative(data["max_health"], "max_health"),
            armor=_non_negative(data.get("armor", 0), "armor"),
            weapon_damage=_non_negative(data.get("weapon_damage", 1), "weapon_damage"),
        )


CharacterSheet = Union[PlayerCharacter, NonPlayerCharacter]


class CharacterRegistry:
    """Lookup of every character and NPC sheet in the session."""

    def __init__(
        self,
        characters: Iterable[PlayerCharacter] = (),
        npcs: Iterable[NonPlayerCharacter] = (),
    ):
        self._sheets: dict[str, CharacterSheet] = {}
        for sheet in list(characters) + list(npcs):
            self.add(sheet)

    def add(self, sheet: CharacterSheet) -> None:
        if sheet.id in self._sheets:
            raise ValueError(f"Duplicate character id: {sheet.id}")
        self._sheets[sheet.id] = sheet

    def get(self, sheet_id: str) -> Optional[CharacterSheet]:
        return self._sheets.get(sheet_id)

    def remove(self, sheet_id: str) -> bool:
        return self._sheets.pop(sheet_id, None) is not None

    def __contains__(self, sheet_id: object) -> bool:
        return sheet_id in self._sheets

    def __len__(self) -> int:
        return len(self._sheets)

    def players(self) -> list[PlayerCharacter]:
        return [s for s in self._sheets.values() if isinstance(s, PlayerCharacter)]

    def npcs(self) -> list[NonPlayerCharacter]:
        return [s for s in self._sheets.values() if isinstance(s, NonPlayerCharacter)]

    def replace_with(self, other: "CharacterRegistry") -> None:
        """Swap in the contents of another registry."""
        self._sheets = dict(other._sheets)

    def to_dict(self) -> dict[str, Any]:
        return {
            "characters": [pc.to_dict() for pc in self.players()],
            "npcs": [npc.to_dict() for npc in self.npcs()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CharacterRegistry":
        characters = require_list(data["characters"], "characters")
        npcs = require_list(data["npcs"], "npcs")
        return cls(
            characters=[PlayerCharacter.from_dict(c) for c in characters],
            npcs=[NonPlayerCharacter.from_dict(n) for n in npcs],
        )


def _non_negative(value: Any, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an integer")
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return value
