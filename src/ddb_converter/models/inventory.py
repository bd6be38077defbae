"""Schemas for processed inventory and weapon entries."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ddb_converter.models.character import DdbItem
from ddb_converter.models.enums import Ability, DamageType, WeaponType


class InventoryOptions(BaseModel):
    """Options controlling inventory processing and XML output.

    Attributes:
        include_zero_quantity_items: Keep items with quantity <= 0.
        include_cost_information: Emit a cost element when the item has a cost.
        generate_detailed_xml: Emit item descriptions.
        mark_items_as_identified: Value of the isidentified flag.
    """

    model_config = ConfigDict(frozen=True)

    include_zero_quantity_items: bool = False
    include_cost_information: bool = True
    generate_detailed_xml: bool = False
    mark_items_as_identified: bool = True


class ContainerContents(BaseModel):
    """A container together with the items stored in it."""

    model_config = ConfigDict(frozen=True)

    container: DdbItem
    contents: list[DdbItem] = Field(default_factory=list)
    current_weight: float = 0.0

    @property
    def is_magic(self) -> bool:
        """Whether contents are weightless (multiplier 0)."""
        return self.container.weight_multiplier == 0


class NestedInventory(BaseModel):
    """Flat inventory rebuilt as a root list plus container map.

    Attributes:
        root_items: Items carried directly by the character (containers included).
        containers: Container item id -> container and its contents.
        total_items: Number of inventory entries kept.
        total_weight: Effective carried weight in pounds.
    """

    model_config = ConfigDict(frozen=True)

    root_items: list[DdbItem] = Field(default_factory=list)
    containers: dict[int, ContainerContents] = Field(default_factory=dict)
    total_items: int = 0
    total_weight: float = 0.0

    def iter_items(self) -> list[DdbItem]:
        """Every kept item, root items first, then container contents."""
        items = list(self.root_items)
        for entry in self.containers.values():
            items.extend(entry.contents)
        return items


class InventoryStatistics(BaseModel):
    """Summary counts for an inventory."""

    model_config = ConfigDict(frozen=True)

    total_items: int = 0
    container_count: int = 0
    magic_containers: int = 0
    total_weight: float = 0.0


class ProcessedInventory(BaseModel):
    """Output of the inventory processor."""

    model_config = ConfigDict(frozen=True)

    nested_structure: NestedInventory
    xml: str = ""
    statistics: InventoryStatistics = Field(default_factory=InventoryStatistics)


class WeaponEntry(BaseModel):
    """One weaponlist row.

    A thrown weapon produces two rows sharing item_id: a thrown form and
    a melee form.

    Attributes:
        item_id: Source D&D Beyond inventory item id.
        inventory_index: Record number of the item in the inventorylist,
            used for the shortcut link.
        name: Weapon name.
        weapon_type: Melee, ranged, or thrown attack form.
        attack_stat: Ability used for attack and damage.
        damage_dice: Damage dice notation.
        damage_type: Damage type.
        properties: Weapon property names.
        max_ammo: Linked ammunition count, if any.
        attack_bonus: Magic bonus to attack and damage rolls.
        linked_shortcut: Whether the row links back to an inventory item.
    """

    model_config = ConfigDict(frozen=True)

    item_id: int
    inventory_index: int | None = None
    name: str
    weapon_type: WeaponType = WeaponType.MELEE
    attack_stat: Ability = Ability.STR
    damage_dice: str = "1d6"
    damage_type: DamageType = DamageType.SLASHING
    properties: list[str] = Field(default_factory=list)
    max_ammo: int | None = None
    attack_bonus: int = 0
    damage_bonus: int = 0
    linked_shortcut: bool = True


__all__ = [
    "InventoryOptions",
    "ContainerContents",
    "NestedInventory",
    "InventoryStatistics",
    "ProcessedInventory",
    "WeaponEntry",
]
