"""Category lookup and hierarchy helpers."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union

from .models import EXPENSE, Category, UnknownCategoryError

CategoryIndex = Mapping[str, Category]


def build_category_index(categories: Iterable[Union[Category, Mapping[str, Any]]]) -> Dict[str, Category]:
    """Build an id -> :class:`Category` lookup once per snapshot."""
    index: Dict[str, Category] = {}
    for item in categories:
        category = item if isinstance(item, Category) else Category.from_record(item)
        index[category.category_id] = category
    return index


def get_category(index: CategoryIndex, category_id: str) -> Category:
    try:
        return index[category_id]
    except KeyError:
        raise UnknownCategoryError(category_id) from None


def category_type(index: CategoryIndex, category_id: str) -> str:
    """Return ``'Income'`` or ``'Expense'`` for ``category_id``."""
    return get_category(index, category_id).type or EXPENSE


def descendant_ids(index: CategoryIndex, category_id: str) -> List[str]:
    """All descendants of ``category_id``, depth first."""
    children: Dict[str, List[str]] = {}
    for category in index.values():
        if category.parent_id:
            children.setdefault(category.parent_id, []).append(category.category_id)

    found: List[str] = []
    seen: Set[str] = {category_id}
    stack = list(reversed(children.get(category_id, [])))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        found.append(current)
        stack.extend(reversed(children.get(current, [])))
    return found


def category_and_descendant_ids(index: CategoryIndex, category_id: str) -> List[str]:
    return [category_id, *descendant_ids(index, category_id)]


def parent_group_id(index: CategoryIndex, category_id: str) -> str:
    """Id a category is grouped under: its parent, or itself for roots."""
    category = get_category(index, category_id)
    return category.parent_id or category.category_id


def build_category_tree(index: CategoryIndex) -> List[Dict[str, Any]]:
    """Nest categories under their parents.

    Orphans (parent missing from the index) are returned as roots.
    Each node is ``{'category': Category, 'children': [...]}``.
    """
    nodes = {cid: {'category': cat, 'children': []} for cid, cat in index.items()}
    roots: List[Dict[str, Any]] = []
    for cid, cat in index.items():
        parent = nodes.get(cat.parent_id) if cat.parent_id else None
        if parent is not None:
            parent['children'].append(nodes[cid])
        else:
            roots.append(nodes[cid])
    return roots


def validate_hierarchy(category_id: str, parent_id: Optional[str], index: CategoryIndex) -> bool:
    """Return ``False`` if making ``parent_id`` the parent would create a cycle."""
    if not parent_id:
        return True
    if category_id == parent_id:
        return False
    return parent_id not in descendant_ids(index, category_id)
