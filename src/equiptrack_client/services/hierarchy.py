"""
equiptrack_client.services.hierarchy

Department tree helpers over an in-memory department list.

Responsibilities:
- Build display paths ("Root > Child > Leaf").
- Walk ancestors and descendants without looping on cyclic parent references.
"""

from __future__ import annotations

from collections.abc import Iterable

from equiptrack_client.schemas import Department

PATH_SEPARATOR = " > "


def ancestor_chain(departments: Iterable[Department], department_id: str, max_depth: int = 32) -> list[Department]:
    """Return the department and its ancestors, nearest first."""
    by_id = {d.id: d for d in departments}
    chain: list[Department] = []
    visited: set[str] = set()
    current = by_id.get(department_id)
    while current is not None and current.id not in visited and len(chain) < max_depth:
        chain.append(current)
        visited.add(current.id)
        current = by_id.get(current.parent_id) if current.parent_id else None
    return chain


def department_path(departments: Iterable[Department], department_id: str) -> str:
    chain = ancestor_chain(departments, department_id)
    return PATH_SEPARATOR.join(d.name for d in reversed(chain))


def descendant_ids(departments: Iterable[Department], department_id: str) -> set[str]:
    children: dict[str, list[str]] = {}
    for d in departments:
        if d.parent_id:
            children.setdefault(d.parent_id, []).append(d.id)

    found: set[str] = set()
    stack = list(children.get(department_id, []))
    while stack:
        current = stack.pop()
        if current in found or current == department_id:
            continue
        found.add(current)
        stack.extend(children.get(current, []))
    return found


def sorted_siblings(departments: Iterable[Department], parent_id: str | None) -> list[Department]:
    return sorted((d for d in departments if d.parent_id == parent_id), key=lambda d: (d.order, d.name))
