"""Inventory nesting, statistics, and the Fantasy Grounds inventorylist.

D&D Beyond stores the inventory as a flat list in which each item points
at its holder through containerEntityId: either the character id (carried
directly) or the id of a container item (a backpack, a Bag of Holding).
The processor rebuilds that into root items plus a container map, without
recursion, so self-referential or cyclic containment cannot loop.

Fantasy Grounds has no nesting of its own. The inventorylist is written
flat: root items first, then each container's contents carrying a
``<location>`` naming the container.
"""

from __future__ import annotations

from ddb_converter.core.logging import get_logger
from ddb_converter.export.xml_writer import XmlWriter, fg_id
from ddb_converter.models.character import DdbItem
from ddb_converter.models.inventory import (
    ContainerContents,
    InventoryOptions,
    InventoryStatistics,
    NestedInventory,
    ProcessedInventory,
)
from ddb_converter.rules.encumbrance import calculate_inventory_weight


logger = get_logger(__name__)

INVENTORY_XML_DEPTH = 2
"""Indentation of <inventorylist> inside <root><character>."""


def _is_kept(item: DdbItem, options: InventoryOptions) -> bool:
    return options.include_zero_quantity_items or item.quantity > 0


def _container_weights(items: list[DdbItem], containers: dict[int, DdbItem]) -> dict[int, float]:
    """Weight held inside each container, nested containers included.

    Each item's weight is scaled by every container it passes through on
    the way up, and added to each of those containers in turn.
    """
    weights = {cid: 0.0 for cid in containers}
    for item in items:
        weight = item.unit_weight * max(item.quantity, 0)
        seen = {item.id}
        parent = item.container_entity_id
        while parent is not None and parent in containers and parent not in seen:
            holder = containers[parent]
            weight *= holder.weight_multiplier
            weights[parent] += weight
            seen.add(parent)
            parent = holder.container_entity_id
    return weights


class InventoryProcessor:
    """Builds the nested inventory and its XML.

    Example:
        >>> processor = InventoryProcessor()
        >>> result = processor.process(character.inventory, character.id)
        >>> result.statistics.container_count
        1
    """

    def __init__(
        self,
        options: InventoryOptions | None = None,
        *,
        debug: bool = False,
        sanitize: bool = True,
    ) -> None:
        self.options = options or InventoryOptions()
        self.debug = debug
        self.sanitize = sanitize

    def build_nested_structure(
        self,
        items: list[DdbItem],
        character_id: int | str | None,
    ) -> NestedInventory:
        """Group a flat inventory into root items and container contents.

        Args:
            items: Flat inventory list.
            character_id: Id of the owning character.

        Returns:
            NestedInventory. Items that point at an unknown holder, or at
            themselves, are placed at the root.
        """
        kept = [item for item in items if _is_kept(item, self.options)]
        container_ids = {
            item.id for item in kept if item.is_container and item.id is not None
        }
        owner = str(character_id) if character_id is not None else None

        root_items: list[DdbItem] = []
        contents: dict[int, list[DdbItem]] = {cid: [] for cid in container_ids}

        for item in kept:
            parent = item.container_entity_id
            if parent is None or (owner is not None and str(parent) == owner):
                root_items.append(item)
            elif parent == item.id:
                logger.warning("Item contains itself, placing at root", item_id=item.id, item=item.name)
                root_items.append(item)
            elif parent in container_ids:
                contents[parent].append(item)
            else:
                logger.warning(
                    "Item references unknown container, placing at root",
                    item_id=item.id,
                    item=item.name,
                    container_id=parent,
                )
                root_items.append(item)

        holders = {item.id: item for item in kept if item.id in container_ids}
        held_weights = _container_weights(kept, holders)
        containers = {
            cid: ContainerContents(
                container=holder,
                contents=contents[cid],
                current_weight=held_weights[cid],
            )
            for cid, holder in holders.items()
        }

        return NestedInventory(
            root_items=root_items,
            containers=containers,
            total_items=len(kept),
            total_weight=calculate_inventory_weight(kept),
        )

    def compute_statistics(self, structure: NestedInventory) -> InventoryStatistics:
        """Summary counts for a nested inventory."""
        return InventoryStatistics(
            total_items=structure.total_items,
            container_count=len(structure.containers),
            magic_containers=sum(1 for c in structure.containers.values() if c.is_magic),
            total_weight=structure.total_weight,
        )

    def _write_item(
        self,
        writer: XmlWriter,
        item: DdbItem,
        index: int,
        location: str | None = None,
    ) -> None:
        definition = item.definition
        writer.open(fg_id(index))
        writer.number("count", item.quantity)
        writer.string("name", item.name)
        writer.number("weight", item.unit_weight)
        writer.number("locked", 1)
        writer.number("isidentified", 1 if self.options.mark_items_as_identified else 0)

        if definition is not None:
            item_type = definition.sub_type or definition.filter_type
            if item_type:
                writer.string("type", item_type)
            if self.options.include_cost_information and definition.cost:
                writer.string("cost", f"{definition.cost:g} gp")
            if self.options.generate_detailed_xml and definition.description:
                writer.formatted_text("description", definition.description)

        if location:
            writer.string("location", location)
        writer.close()

    def generate_xml(
        self,
        structure: NestedInventory,
        *,
        depth: int = INVENTORY_XML_DEPTH,
        sanitize: bool = True,
    ) -> str:
        """Render the flat Fantasy Grounds inventorylist.

        Args:
            structure: Nested inventory.
            depth: Indentation depth of the <inventorylist> element.
            sanitize: Run string values through the full sanitizer.

        Returns:
            The <inventorylist> fragment.
        """
        writer = XmlWriter(depth, sanitize=sanitize)
        writer.open("inventorylist")
        index = 1
        for item in structure.root_items:
            self._write_item(writer, item, index)
            index += 1
        for entry in structure.containers.values():
            for item in entry.contents:
                self._write_item(writer, item, index, location=entry.container.name)
                index += 1
        writer.close("inventorylist")
        return writer.render()

    def process(
        self,
        items: list[DdbItem],
        character_id: int | str | None,
    ) -> ProcessedInventory:
        """Nest, summarize, and render an inventory.

        Args:
            items: Flat inventory list.
            character_id: Id of the owning character.

        Returns:
            ProcessedInventory.
        """
        structure = self.build_nested_structure(items, character_id)
        statistics = self.compute_statistics(structure)
        xml = self.generate_xml(structure, sanitize=self.sanitize)

        log = logger.debug if self.debug else logger.info
        log(
            "Inventory processed",
            total_items=statistics.total_items,
            containers=statistics.container_count,
            magic_containers=statistics.magic_containers,
            total_weight=statistics.total_weight,
        )
        return ProcessedInventory(nested_structure=structure, xml=xml, statistics=statistics)


def process_inventory(
    items: list[DdbItem],
    character_id: int | str | None,
    options: InventoryOptions | None = None,
) -> ProcessedInventory:
    """Process an inventory with a one-off InventoryProcessor."""
    return InventoryProcessor(options).process(items, character_id)


__all__ = [
    "InventoryProcessor",
    "process_inventory",
]
