from datetime import datetime, timedelta, timezone

from histograph.config import MergeAnalysisConfig
from histograph.domain.models import Event, EventType, MergeComplexity
from histograph.services.relationship_service import (
    RelationshipAnalyzer,
    classify_merge,
    elapsed_days,
)

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _commit(id, at=None, branch="feature"):
    return Event(id, EventType.COMMIT, timestamp=at, branch=branch)


def _merge(id, parents, at=None, branch="main"):
    return Event(id, EventType.MERGE, timestamp=at, branch=branch, parent_ids=tuple(parents))


def test_simple_merge_result():
    events = [
        _commit("base", T0, branch="main"),
        _commit("f1", T0 + timedelta(days=1)),
        _merge("m", ["base", "f1"], T0 + timedelta(days=4)),
    ]
    [result] = RelationshipAnalyzer().analyze_merge_commits(events)

    assert result.merge_event.id == "m"
    assert [e.id for e in result.source_events] == ["f1"]
    assert result.target_branch == "main"
    assert result.branch_lifetime == 3
    assert result.complexity == MergeComplexity.SIMPLE


def test_octopus_merge_result_uses_earliest_source():
    events = [
        _commit("p0", T0, branch="main"),
        _commit("p1", T0 + timedelta(days=5)),
        _commit("p2", T0 + timedelta(days=2)),
        _commit("p3", T0 + timedelta(days=6)),
        _merge("m", ["p0", "p1", "p2", "p3"], T0 + timedelta(days=10)),
    ]
    [result] = RelationshipAnalyzer().analyze_merge_commits(events)
    assert result.complexity == MergeComplexity.OCTOPUS
    assert [e.id for e in result.source_events] == ["p1", "p2", "p3"]
    assert result.branch_lifetime == 8


def test_merges_with_fewer_than_two_resolvable_parents_are_skipped():
    events = [
        _commit("a", T0),
        _merge("m1", ["a", "ghost"], T0),
        _merge("m2", ["a"], T0),
    ]
    assert RelationshipAnalyzer().analyze_merge_commits(events) == []


def test_lifetime_is_never_negative_and_zero_without_timestamps():
    events = [
        _commit("a", T0),
        _commit("b", T0 + timedelta(days=3)),
        _merge("early", ["a", "b"], T0),
        _commit("c"),
        _commit("d"),
        _merge("untimed", ["c", "d"]),
    ]
    results = {r.merge_event.id: r for r in RelationshipAnalyzer().analyze_merge_commits(events)}
    assert results["early"].branch_lifetime == 0
    assert results["untimed"].branch_lifetime == 0


def test_lifetime_rounds_half_days_up():
    assert elapsed_days(T0 + timedelta(hours=36), T0) == 2
    assert elapsed_days(T0 + timedelta(hours=35), T0) == 1


def test_failure_in_one_merge_does_not_hide_others():
    naive = datetime(2024, 3, 2, 12, 0)
    events = [
        _commit("a", T0),
        _commit("b", naive),  # mixing naive/aware timestamps fails the subtraction
        _merge("broken", ["a", "b"], T0 + timedelta(days=1)),
        _commit("c", T0),
        _merge("fine", ["a", "c"], T0 + timedelta(days=2)),
    ]
    results = RelationshipAnalyzer().analyze_merge_commits(events)
    assert [r.merge_event.id for r in results] == ["fine"]


def test_octopus_results_can_be_excluded():
    analyzer = RelationshipAnalyzer(MergeAnalysisConfig(include_octopus_merges=False))
    events = [_commit("a"), _commit("b"), _commit("c"), _merge("m", ["a", "b", "c"])]
    assert analyzer.analyze_merge_commits(events) == []


def test_classification_by_parent_count():
    assert classify_merge(2) == MergeComplexity.SIMPLE
    assert classify_merge(3) == MergeComplexity.OCTOPUS
    assert classify_merge(8) == MergeComplexity.OCTOPUS


def test_analysis_statistics():
    events = [
        _commit("root"),
        Event("a", EventType.COMMIT, parent_ids=("root",)),
        Event("b", EventType.COMMIT, parent_ids=("root",)),
        Event("c", EventType.COMMIT, parent_ids=("root",)),
        _merge("m2", ["a", "b"]),
        _merge("m3", ["a", "b", "c"]),
        Event("v1", EventType.TAG),
    ]
    stats = RelationshipAnalyzer().analysis_statistics(events)
    assert stats == {
        "total_events": 7,
        "merge_events": 2,
        "simple_merges": 1,
        "octopus_merges": 1,
        "orphan_events": 2,
    }


def test_parentless_merge_is_not_an_orphan():
    events = [_commit("root"), _merge("m", [])]
    stats = RelationshipAnalyzer().analysis_statistics(events)
    assert stats["orphan_events"] == 1
    assert stats["merge_events"] == 1
