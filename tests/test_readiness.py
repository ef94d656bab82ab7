from blocking_planner.core.graph.readiness import find_parallel_groups, find_ready_items
from blocking_planner.core.model import BlockingEdge as E
from blocking_planner.core.model import Issue


def _statuses(**statuses: str) -> dict[str, Issue]:
    return {nid: Issue(id=nid, status=s) for nid, s in statuses.items()}


DIAMOND = [E("a", "b"), E("a", "c"), E("b", "d"), E("c", "d")]


def test_only_unblocked_items_are_ready():
    edges = [E("a", "b"), E("b", "c")]
    issue_map = _statuses(a="open", b="open", c="open")
    assert find_ready_items(["a", "b", "c"], edges, issue_map) == ["a"]


def test_closing_a_blocker_readies_its_dependent():
    edges = [E("a", "b"), E("b", "c")]
    issue_map = _statuses(a="closed", b="open", c="open")
    assert find_ready_items(["a", "b", "c"], edges, issue_map) == ["b"]

    issue_map = _statuses(a="done", b="in_progress", c="open")
    assert find_ready_items(["a", "b", "c"], edges, issue_map) == ["b"]


def test_closed_items_are_never_ready():
    issue_map = _statuses(a="closed", b="done")
    assert find_ready_items(["a", "b"], [], issue_map) == []


def test_all_items_ready_without_edges():
    issue_map = _statuses(a="open", b="blocked")
    assert find_ready_items(["a", "b"], [], issue_map) == ["a", "b"]


def test_unknown_blocker_counts_as_incomplete():
    issue_map = _statuses(b="open")
    assert find_ready_items(["a", "b"], [E("a", "b")], issue_map) == ["a"]


def test_diamond_groups_middle_items_together():
    groups = find_parallel_groups(["a", "b", "c", "d"], DIAMOND)
    assert groups == [["a"], ["b", "c"], ["d"]]


def test_longest_predecessor_decides_phase():
    edges = [E("a", "b"), E("b", "c"), E("a", "c")]
    groups = find_parallel_groups(["a", "b", "c"], edges)
    assert groups == [["a"], ["b"], ["c"]]


def test_closed_blocker_does_not_delay_dependent():
    issue_map = _statuses(a="closed", b="open")
    groups = find_parallel_groups(["a", "b"], [E("a", "b")], issue_map)
    assert groups == [["a", "b"]]


def test_closed_blocker_in_chain():
    edges = [E("a", "b"), E("b", "c")]
    issue_map = _statuses(a="closed", b="open", c="open")
    groups = find_parallel_groups(["a", "b", "c"], edges, issue_map)
    assert groups == [["a", "b"], ["c"]]


def test_single_group_without_edges_and_empty_input():
    assert find_parallel_groups(["a", "b", "c"], []) == [["a", "b", "c"]]
    assert find_parallel_groups([], []) == []


def test_cycle_members_default_to_phase_zero():
    edges = [E("a", "b"), E("b", "a")]
    assert find_parallel_groups(["a", "b", "c"], edges) == [["a", "b", "c"]]


def test_cycle_member_keeps_depth_from_acyclic_blocker():
    edges = [E("c", "a"), E("a", "b"), E("b", "a")]
    assert find_parallel_groups(["a", "b", "c"], edges) == [["b", "c"], ["a"]]
