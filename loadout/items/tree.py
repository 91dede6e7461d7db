# loadout/items/tree.py
"""Assembled item nodes and helpers for the flat parent-linked tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List

import polars as pl
import structlog

if TYPE_CHECKING:
    from loadout.items.catalog import ItemCatalog

log = structlog.get_logger(__name__)

ASSEMBLED_ITEM_SCHEMA: dict[str, pl.DataType] = {
    "item_id": pl.Utf8,
    "template_id": pl.Utf8,
    # Null for the root item
    "parent_id": pl.Utf8,
    "slot_id": pl.Utf8,
    "depth": pl.UInt16,
}


@dataclass
class AssembledItem:
    """One node of an assembled tree; children point at their parent by id."""

    id: str
    template_id: str
    parent_id: str | None = None
    slot_id: str | None = None


def children_of(items: Iterable[AssembledItem], parent_id: str) -> List[AssembledItem]:
    return [item for item in items if item.parent_id == parent_id]


def _depths(items: List[AssembledItem]) -> dict[str, int]:
    by_id = {item.id: item for item in items}
    depths: dict[str, int] = {}
    for item in items:
        depth = 0
        current = item
        seen = {current.id}
        while current.parent_id is not None and current.parent_id in by_id:
            current = by_id[current.parent_id]
            if current.id in seen:
                break
            seen.add(current.id)
            depth += 1
        depths[item.id] = depth
    return depths


def items_to_frame(items: Iterable[AssembledItem]) -> pl.DataFrame:
    """Tabular view of an assembled tree, one row per node."""
    items = list(items)
    if not items:
        return pl.DataFrame(schema=ASSEMBLED_ITEM_SCHEMA)
    depths = _depths(items)
    return pl.DataFrame(
        {
            "item_id": [i.id for i in items],
            "template_id": [i.template_id for i in items],
            "parent_id": [i.parent_id for i in items],
            "slot_id": [i.slot_id for i in items],
            "depth": [depths[i.id] for i in items],
        },
        schema=ASSEMBLED_ITEM_SCHEMA,
    )


def find_tree_problems(
    items: Iterable[AssembledItem], catalog: "ItemCatalog"
) -> List[str]:
    """List violations of the tree invariants (empty when the tree is sound).

    Every non-root node must point at exactly one other node in the list, and
    its slot must exist on the parent's template.
    """
    frame = items_to_frame(items)
    problems: List[str] = []
    if frame.height == 0:
        return problems

    duplicated = frame.filter(pl.col("item_id").is_duplicated())
    for item_id in duplicated["item_id"].unique().to_list():
        problems.append(f"duplicate item id {item_id}")

    parents = frame.select(
        pl.col("item_id").alias("parent_id"),
        pl.col("template_id").alias("parent_template_id"),
    ).unique(subset="parent_id", keep="first")
    children = frame.filter(pl.col("parent_id").is_not_null()).join(
        parents, on="parent_id", how="left"
    )
    for row in children.iter_rows(named=True):
        if row["parent_template_id"] is None:
            problems.append(
                f"{row['item_id']} references missing parent {row['parent_id']}"
            )
            continue
        parent_template = catalog.get_template(row["parent_template_id"])
        if parent_template is None:
            problems.append(
                f"{row['item_id']} has parent of unknown template {row['parent_template_id']}"
            )
            continue
        if row["slot_id"] is None or parent_template.get_slot(row["slot_id"]) is None:
            problems.append(
                f"{row['item_id']} sits in slot {row['slot_id']} which "
                f"{parent_template.id} does not expose"
            )

    if problems:
        log.debug("Assembled tree has problems", count=len(problems))
    return problems


__all__ = [
    "ASSEMBLED_ITEM_SCHEMA",
    "AssembledItem",
    "children_of",
    "find_tree_problems",
    "items_to_frame",
]
