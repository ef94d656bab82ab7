from blocking_planner.core.graph.critical_path import (
    find_critical_path,
    find_critical_paths,
    node_weights,
    priority_weight,
)
from blocking_planner.core.model import BlockingEdge as E
from blocking_planner.core.model import Issue


def _issues(**priorities: int) -> dict[str, Issue]:
    return {nid: Issue(id=nid, priority=p) for nid, p in priorities.items()}


def test_priority_weight_is_exponential_and_clamped():
    assert priority_weight(Issue(id="a", priority=0)) == 81
    assert priority_weight(Issue(id="a", priority=1)) == 27
    assert priority_weight(Issue(id="a", priority=4)) == 1
    assert priority_weight(Issue(id="a", priority=-3)) == 81
    assert priority_weight(Issue(id="a", priority=9)) == 1
    assert priority_weight(Issue(id="a")) == 1
    assert priority_weight(None) == 1


def test_estimates_take_over_when_any_issue_has_one():
    issue_map = {
        "a": Issue(id="a", priority=0, estimate_minutes=30),
        "b": Issue(id="b", priority=0),
    }
    assert node_weights(["a", "b"], issue_map) == {"a": 30, "b": 1}


def test_linear_chain():
    paths = find_critical_paths(["a", "b", "c"], [E("a", "b"), E("b", "c")])
    assert paths == [["a", "b", "c"]]


def test_diamond_single_path():
    edges = [E("a", "b"), E("a", "c"), E("b", "d"), E("c", "d")]
    path = find_critical_paths(["a", "b", "c", "d"], edges, None, 1)[0]
    assert len(path) == 3
    assert path[0] == "a"
    assert path[-1] == "d"


def test_single_node_and_empty_input():
    assert find_critical_paths(["x"], []) == [["x"]]
    assert find_critical_paths([], []) == []
    assert find_critical_path([], []) == []


def test_higher_priority_short_chain_beats_long_low_priority_chain():
    edges = [E("p1a", "p1b"), E("p2a", "p2b"), E("p2b", "p2c"), E("p2c", "p2d")]
    issue_map = _issues(p1a=1, p1b=1, p2a=2, p2b=2, p2c=2, p2d=2)
    ids = list(issue_map)

    assert find_critical_paths(ids, edges, issue_map, 1) == [["p1a", "p1b"]]
    # 4 * 9 = 36 is below 70% of 2 * 27 = 54, so the long chain is not reported.
    assert find_critical_paths(ids, edges, issue_map) == [["p1a", "p1b"]]


def test_uses_estimated_duration_when_available():
    edges = [E("a", "b"), E("b", "c"), E("c", "d"), E("x", "y")]
    issue_map = {nid: Issue(id=nid, estimate_minutes=30) for nid in "abcd"}
    issue_map["x"] = Issue(id="x", estimate_minutes=60)
    issue_map["y"] = Issue(id="y", estimate_minutes=3 * 24 * 60)

    paths = find_critical_paths(list(issue_map), edges, issue_map, 1)
    assert paths == [["x", "y"]]


def test_two_independent_chains_of_similar_length():
    edges = [E("a", "b"), E("b", "c"), E("x", "y"), E("y", "z")]
    paths = find_critical_paths(["a", "b", "c", "x", "y", "z"], edges)
    assert paths == [["a", "b", "c"], ["x", "y", "z"]]


def test_diamond_with_equal_branches_reports_one_disjoint_path():
    edges = [E("a", "b"), E("a", "c"), E("b", "d"), E("c", "d")]
    issue_map = _issues(a=1, b=1, c=1, d=1)
    paths = find_critical_paths(["a", "b", "c", "d"], edges, issue_map)
    assert paths == [["a", "b", "d"]]


def test_limits_to_max_paths_and_paths_are_disjoint():
    edges = [E("a", "b"), E("c", "d"), E("e", "f"), E("g", "h")]
    ids = ["a", "b", "c", "d", "e", "f", "g", "h"]

    paths = find_critical_paths(ids, edges, None, 2)
    assert paths == [["a", "b"], ["c", "d"]]

    paths = find_critical_paths(ids, edges)
    assert len(paths) == 3
    seen: set[str] = set()
    for path in paths:
        assert not seen.intersection(path)
        seen.update(path)

    assert find_critical_paths(ids, edges, None, 0) == []


def test_filters_out_insignificant_paths():
    edges = [E("a", "b"), E("b", "c"), E("b", "d"), E("x", "y")]
    issue_map = _issues(a=1, b=1, c=1, d=1, x=1, y=1)
    paths = find_critical_paths(["a", "b", "c", "d", "x", "y"], edges, issue_map)
    assert paths == [["a", "b", "c"]]


def test_cycles_terminate():
    edges = [E("a", "b"), E("b", "a")]
    paths = find_critical_paths(["a", "b"], edges)
    assert len(paths) == 1
    assert sorted(paths[0]) == ["a", "b"]


def test_legacy_accessor_returns_first_ranked_path():
    edges = [E("a", "b"), E("b", "c"), E("x", "y"), E("y", "z")]
    ids = ["a", "b", "c", "x", "y", "z"]
    assert find_critical_path(ids, edges) == find_critical_paths(ids, edges)[0]
