"""
tests.test_hierarchy

Department tree helpers.
"""

from __future__ import annotations

from equiptrack_client.schemas import Department
from equiptrack_client.services import hierarchy


def dept(dept_id: str, parent_id: str | None = None, order: int = 0) -> Department:
    return Department(id=dept_id, name=dept_id.upper(), parent_id=parent_id, order=order)


TREE = [
    dept("root"),
    dept("lab", "root", order=2),
    dept("shop", "root", order=1),
    dept("bench", "lab"),
]


def test_department_path_is_root_first() -> None:
    assert hierarchy.department_path(TREE, "bench") == "ROOT > LAB > BENCH"
    assert hierarchy.department_path(TREE, "root") == "ROOT"
    assert hierarchy.department_path(TREE, "missing") == ""


def test_ancestor_chain_stops_on_cycles() -> None:
    cyclic = [dept("a", "b"), dept("b", "a")]
    assert [d.id for d in hierarchy.ancestor_chain(cyclic, "a")] == ["a", "b"]


def test_ancestor_chain_respects_max_depth() -> None:
    chain = [dept("n0")] + [dept(f"n{i}", f"n{i - 1}") for i in range(1, 50)]
    assert len(hierarchy.ancestor_chain(chain, "n49", max_depth=10)) == 10


def test_descendants() -> None:
    assert hierarchy.descendant_ids(TREE, "root") == {"lab", "shop", "bench"}
    assert hierarchy.descendant_ids(TREE, "bench") == set()
    assert hierarchy.descendant_ids([dept("a", "b"), dept("b", "a")], "a") == {"b"}


def test_sorted_siblings() -> None:
    assert [d.id for d in hierarchy.sorted_siblings(TREE, "root")] == ["shop", "lab"]
    assert [d.id for d in hierarchy.sorted_siblings(TREE, None)] == ["root"]
