"""
Category tree construction for storefront menus.

Categories arrive as a flat list with parent references. A catalog can
override a category's parent, name and position; the override always wins
over the category's own values.

Nodes whose effective parent is missing from the input (orphans) are left out
of the tree, and so are nodes sitting on a parent cycle: with a single parent
per node, a cycle can never be reached from a root, so its members and their
subtrees are dropped instead of being walked forever.
"""
import math
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Set


@dataclass
class CategoryNode:
    id: str
    name: str
    slug: str = ""
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    image_url: Optional[str] = None
    # Catalog-scoped overrides
    custom_name: Optional[str] = None
    catalog_parent_id: Optional[str] = None
    catalog_sort_order: Optional[int] = None
    product_count: int = 0
    total_product_count: int = 0
    children: List["CategoryNode"] = field(default_factory=list)

    @property
    def effective_parent_id(self) -> Optional[str]:
        return self.catalog_parent_id if self.catalog_parent_id is not None else self.parent_id

    @property
    def effective_sort_order(self) -> Optional[int]:
        return self.catalog_sort_order if self.catalog_sort_order is not None else self.sort_order

    @property
    def display_name(self) -> str:
        return self.custom_name or self.name

    def _fields(self) -> dict:
        return {
            "id": self.id,
            "name": self.display_name,
            "slug": self.slug,
            "image_url": self.image_url,
            "parent_id": self.effective_parent_id,
            "sort_order": self.effective_sort_order,
            "product_count": self.product_count,
            "total_product_count": self.total_product_count,
        }

    def to_dict(self) -> dict:
        """Nested dict of this subtree."""
        built: Dict[int, dict] = {}
        for node in reversed(flatten([self])):
            built[id(node)] = {**node._fields(), "children": [built[id(child)] for child in node.children]}
        return built[id(self)]


def sort_key(node: CategoryNode):
    order = node.effective_sort_order
    return (order if order is not None else math.inf, node.display_name.casefold())


def build_tree(categories: Iterable[CategoryNode]) -> List[CategoryNode]:
    """Build a sorted forest; input nodes are copied, never mutated."""
    nodes = sorted((replace(c, children=[]) for c in categories), key=sort_key)
    known_ids = {node.id for node in nodes}

    roots: List[CategoryNode] = []
    children_of: Dict[str, List[CategoryNode]] = defaultdict(list)
    for node in nodes:
        parent_id = node.effective_parent_id
        if parent_id is None:
            roots.append(node)
        elif parent_id in known_ids:
            children_of[parent_id].append(node)

    visited: Set[str] = set()
    order: List[CategoryNode] = []
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        if node.id in visited:
            continue
        visited.add(node.id)
        order.append(node)
        node.children = [child for child in children_of.get(node.id, []) if child.id not in visited]
        stack.extend(reversed(node.children))

    # Children always come after their parent in ``order``
    for node in reversed(order):
        node.total_product_count = node.product_count + sum(c.total_product_count for c in node.children)

    return roots


def filter_to_populated(forest: List[CategoryNode]) -> List[CategoryNode]:
    """Keep only branches where the node or a descendant has products."""
    kept: Dict[int, CategoryNode] = {}
    # Children are visited before their parents
    for node in reversed(flatten(forest)):
        kept_children = [kept[id(child)] for child in node.children if id(child) in kept]
        if node.product_count > 0 or kept_children:
            kept[id(node)] = replace(node, children=kept_children)
    return [kept[id(node)] for node in forest if id(node) in kept]


def _find(node_id: str, forest: List[CategoryNode]) -> Optional[CategoryNode]:
    return next((node for node in flatten(forest) if node.id == node_id), None)


def descendant_ids(node_id: str, forest: List[CategoryNode]) -> Set[str]:
    """
    Ids of the node and everything below it, so that selecting a parent
    category also matches products filed under its children. An unknown id
    yields just itself.
    """
    start = _find(node_id, forest)
    if start is None:
        return {node_id}
    return {node.id for node in flatten([start])}


def parent_chain(category_id: str, categories: Iterable[CategoryNode]) -> List[str]:
    """Ancestor ids, nearest first."""
    by_id = {c.id: c for c in categories}
    chain: List[str] = []
    seen = {category_id}
    current = by_id.get(category_id)
    while current is not None and current.effective_parent_id is not None:
        parent_id = current.effective_parent_id
        if parent_id in seen:
            break
        chain.append(parent_id)
        seen.add(parent_id)
        current = by_id.get(parent_id)
    return chain


def flatten(forest: List[CategoryNode]) -> List[CategoryNode]:
    """Pre-order listing of the forest: every parent before its children."""
    result = []
    stack = list(reversed(forest))
    while stack:
        node = stack.pop()
        result.append(node)
        stack.extend(reversed(node.children))
    return result
