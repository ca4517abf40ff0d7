import pytest

from quota_activator.engine.conflict_validator import find_conflicts, validate_target_times
from quota_activator.graph.conflict_graph import build_conflict_graph
from quota_activator.models.exceptions import ConflictError, DuplicateTargetError, InvalidFormat


class TestValidateTargetTimes:
    """Unit tests for pairwise quota window conflict detection."""

    def test_evenly_spaced_targets_pass(self, three_targets):
        validate_target_times(three_targets.target_times, three_targets.interval_hours)

    def test_single_target_passes(self):
        validate_target_times(["09:00"], 24)

    def test_close_targets_conflict(self, conflicting_targets):
        """18:00 triggers at 13:00, inside [09:00, 14:00) opened for 14:00."""
        with pytest.raises(ConflictError) as exc_info:
            validate_target_times(conflicting_targets, 5)

        err = exc_info.value
        assert err.target_a == "18:00"
        assert err.target_b == "14:00"
        assert err.trigger_a == "13:00"
        assert err.trigger_b == "09:00"
        assert (err.window_start, err.window_end) == ("09:00", "14:00")
        assert err.interval_hours == 5
        assert "at least 5 hours apart" in str(err)

    def test_conflict_detected_regardless_of_input_order(self):
        with pytest.raises(ConflictError) as forward:
            validate_target_times(["14:00", "18:00"], 5)
        with pytest.raises(ConflictError) as reverse:
            validate_target_times(["18:00", "14:00"], 5)
        assert forward.value.to_dict() == reverse.value.to_dict()

    def test_report_is_deterministic(self):
        targets = ["20:00", "08:00", "10:00", "22:00"]
        first = [str(c) for c in find_conflicts(targets, 6)]
        second = [str(c) for c in find_conflicts(targets, 6)]
        assert first == second

    def test_conflict_across_midnight(self):
        """23:00 and 01:00 are only two hours apart once the day wraps."""
        with pytest.raises(ConflictError) as exc_info:
            validate_target_times(["01:00", "12:00", "23:00"], 5)
        assert {exc_info.value.target_a, exc_info.value.target_b} == {"01:00", "23:00"}

    def test_exact_spacing_passes(self):
        validate_target_times(["00:00", "08:00", "16:00"], 8)

    def test_full_day_interval_conflicts_with_any_second_target(self):
        with pytest.raises(ConflictError):
            validate_target_times(["06:00", "18:00"], 24)

    def test_multi_day_interval_conflicts(self):
        with pytest.raises(ConflictError):
            validate_target_times(["06:00", "18:00"], 30)

    def test_duplicate_target_rejected(self):
        with pytest.raises(DuplicateTargetError) as exc_info:
            validate_target_times(["09:00", "14:00", "09:00"], 5)
        assert exc_info.value.target_a == "09:00"
        assert "duplicate" in str(exc_info.value)

    def test_duplicate_reported_before_other_conflicts(self):
        with pytest.raises(DuplicateTargetError):
            validate_target_times(["14:00", "18:00", "18:00"], 5)

    def test_duplicate_is_a_conflict(self):
        with pytest.raises(ConflictError):
            validate_target_times(["07:30", "07:30"], 3)

    def test_invalid_format_raises(self):
        with pytest.raises(InvalidFormat):
            validate_target_times(["09:00", "25:00"], 5)


class TestFindConflicts:
    def test_no_conflicts(self, three_targets):
        assert find_conflicts(three_targets.target_times, 5) == []

    def test_lists_every_conflicting_pair(self):
        conflicts = find_conflicts(["09:00", "10:00", "11:00"], 5)
        pairs = {(c.target_a, c.target_b) for c in conflicts}
        assert pairs == {("10:00", "09:00"), ("11:00", "09:00"), ("11:00", "10:00")}


class TestConflictGraph:
    def test_graph_is_undirected(self, conflicting_targets):
        graph = build_conflict_graph(conflicting_targets, 5)
        assert graph["14:00"] == {"18:00"}
        assert graph["18:00"] == {"14:00"}

    def test_clean_schedule_has_empty_graph(self, three_targets):
        assert dict(build_conflict_graph(three_targets.target_times, 5)) == {}
