"""
Cascading lookups for hierarchical selects.

Forms pick entities through chains of dependent dropdowns:

    Society -> Apartment -> Flat
    Apartment -> MaintenanceGroup -> Component
    Apartment -> MaintenanceGroup, Flat (flat maintenance)

Choosing a value at one level filters the options of the next and clears
every selection below it. Labels for ids that are no longer in the option
lists (deleted or inactive records) fall back to a synthesized "#id".
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Sequence

from society_console.lib import logs
from society_console.utils import label_or_id, to_nullable_number

LOG = logs.logger(__file__)

FieldDerivation = Callable[[str, Any, Any], dict[str, Any]]


@dataclass(frozen=True)
class LookupNode:
    """One selectable option."""

    id: Any
    parent_id: Any = None
    label: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class LookupSource:
    """
    Where a level's options come from and how records map to nodes.

    Attributes:
        endpoint: List endpoint, e.g. "/apartment/Get-All-Apartment".
        id_key: Record key holding the option id.
        label_key: Record key holding the display label.
        parent_key: Record key linking to the previous level, if any.
        active_key: Record key holding the active flag.
    """

    endpoint: str
    id_key: str
    label_key: str
    parent_key: str | None = None
    active_key: str = "isActive"

    def to_node(self, record: Mapping[str, Any]) -> LookupNode | None:
        node_id = record.get(self.id_key)
        if _is_empty(node_id):
            return None
        active = record.get(self.active_key, True)
        return LookupNode(
            id=node_id,
            parent_id=record.get(self.parent_key) if self.parent_key else None,
            label=str(record.get(self.label_key) or ""),
            is_active=active is not False,
        )


@dataclass
class LookupLevel:
    """
    A single level of a hierarchy.

    Attributes:
        name: Level name, e.g. "apartment".
        prefix: Prefix for synthesized labels ("Apartment #3").
        source: Where load() fetches the options from.
        nodes: Loaded options.
        selected: Current selection, None when nothing is chosen.
        filter_level: Level whose selection filters these options; None
            means the level right above.
    """

    name: str
    prefix: str = ""
    source: LookupSource | None = None
    nodes: list[LookupNode] = field(default_factory=list)
    selected: Any = None
    filter_level: int | None = None


class LookupHierarchy:
    """Ordered levels of dependent options, level 0 being the root."""

    def __init__(self, levels: Sequence[LookupLevel]) -> None:
        if not levels:
            raise ValueError("A lookup hierarchy needs at least one level")
        self.levels = list(levels)

    def __len__(self) -> int:
        return len(self.levels)

    def level(self, level: int) -> LookupLevel:
        if not 0 <= level < len(self.levels):
            raise IndexError(f"No lookup level {level}")
        return self.levels[level]

    def index_of(self, name: str) -> int:
        for index, lvl in enumerate(self.levels):
            if lvl.name == name:
                return index
        raise KeyError(f"No lookup level named '{name}'")

    def set_nodes(self, level: int, nodes: Iterable[LookupNode]) -> None:
        self.level(level).nodes = list(nodes)

    def selection(self, level: int) -> Any:
        return self.level(level).selected

    def parent_level(self, level: int) -> int | None:
        """
        Index of the level whose selection filters a level's options.

        Flats of a flat maintenance form follow the apartment even though
        the maintenance group sits between them in the chain.
        """
        if level == 0:
            return None
        lvl = self.level(level)
        if lvl.filter_level is not None and 0 <= lvl.filter_level < level:
            return lvl.filter_level
        return level - 1

    def options_for(self, level: int, parent_id: Any = None) -> list[LookupNode]:
        """
        Return the active options of a level under a parent.

        Level 0 ignores parent_id. Deeper levels return nothing until a
        parent is chosen.
        """
        nodes = [n for n in self.level(level).nodes if n.is_active]
        if level == 0:
            return nodes
        if _is_empty(parent_id):
            return []
        return [n for n in nodes if _same_id(n.parent_id, parent_id)]

    def on_parent_change(self, level: int, new_id: Any) -> list[int]:
        """
        Select a value and clear every deeper level.

        Deeper levels are cleared even when new_id is empty.

        Returns:
            Indexes of the levels that were cleared.
        """
        self.level(level).selected = None if _is_empty(new_id) else new_id
        cleared = list(range(level + 1, len(self.levels)))
        for index in cleared:
            self.levels[index].selected = None
        return cleared

    def find(self, level: int, entity_id: Any) -> LookupNode | None:
        if _is_empty(entity_id):
            return None
        for node in self.level(level).nodes:
            if _same_id(node.id, entity_id):
                return node
        return None

    def label(self, level: int, entity_id: Any, prefix: str | None = None) -> str:
        """
        Return the label for an id at a level.

        Inactive nodes still resolve; ids with no node at all render as
        "#<id>" (or "<prefix> #<id>"), and an empty id renders as "-".
        """
        node = self.find(level, entity_id)
        return label_or_id(
            node.label if node else None,
            entity_id,
            self.level(level).prefix if prefix is None else prefix,
        )

    async def load(self, gateway: Any) -> None:
        """
        Fetch every level's options through a CrudGateway.

        A level whose fetch fails loads as empty; the failure is logged and
        the remaining levels still load.
        """
        for lvl in self.levels:
            if lvl.source is None:
                continue
            try:
                records = await gateway.fetch_all(lvl.source.endpoint)
            except Exception:
                LOG.warning("load - level:%s failed, using no options", lvl.name, exc_info=True)
                lvl.nodes = []
                continue
            nodes = [lvl.source.to_node(r) for r in records if isinstance(r, Mapping)]
            lvl.nodes = [n for n in nodes if n is not None]
            LOG.info("load - level:%s options:%s", lvl.name, len(lvl.nodes))


def cascade_derivation(hierarchy: LookupHierarchy, fields: Mapping[str, int]) -> FieldDerivation:
    """
    Bind hierarchy levels to entity fields for an edit session.

    Args:
        hierarchy: The hierarchy the form's selects read from.
        fields: Entity field -> hierarchy level, e.g.
            {"society_id": 0, "apartment_id": 1, "flat_id": 2}.

    Setting a bound field selects it in the hierarchy and clears the fields
    bound to every deeper level.
    """
    by_level = {level: name for name, level in fields.items()}

    def derive(name: str, value: Any, current: Any) -> dict[str, Any]:
        level = fields.get(name)
        if level is None:
            return {}
        cleared = hierarchy.on_parent_change(level, value)
        return {by_level[i]: None for i in cleared if i in by_level}

    return derive


@dataclass(frozen=True)
class RollupItem:
    """A child row contributing an amount to its parent."""

    id: Any
    parent_id: Any
    amount: Decimal | None = None
    label: str = ""
    is_active: bool = True


class RollupHierarchy:
    """
    Parent/child view where the parent shows the sum of its children.

    Used for maintenance groups and their components; the total is a
    read-only display value and is never written back.
    """

    def __init__(self, items: Iterable[RollupItem] = ()) -> None:
        self.items = list(items)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        id_key: str = "maintenanceGroupComponentId",
        parent_key: str = "maintenanceGroupId",
        amount_key: str = "amount",
        label_key: str = "componentName",
        active_key: str = "isActive",
    ) -> "RollupHierarchy":
        return cls(
            RollupItem(
                id=r.get(id_key),
                parent_id=r.get(parent_key),
                amount=to_nullable_number(r.get(amount_key)),
                label=str(r.get(label_key) or ""),
                is_active=r.get(active_key, True) is not False,
            )
            for r in records
        )

    def children(self, parent_id: Any) -> list[RollupItem]:
        return [i for i in self.items if _same_id(i.parent_id, parent_id)]

    def total(self, parent_id: Any) -> Decimal:
        """Sum of the active children's amounts; missing amounts count as 0."""
        return sum(
            (i.amount or Decimal(0) for i in self.children(parent_id) if i.is_active),
            Decimal(0),
        )


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _same_id(left: Any, right: Any) -> bool:
    if _is_empty(left) or _is_empty(right):
        return False
    return str(left).strip() == str(right).strip()
