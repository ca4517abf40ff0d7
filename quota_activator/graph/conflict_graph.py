from collections import defaultdict
from typing import Dict, Sequence, Set

from quota_activator.engine.conflict_validator import find_conflicts


def build_conflict_graph(target_times: Sequence[str], interval_hours: int) -> Dict[str, Set[str]]:
    graph: Dict[str, Set[str]] = defaultdict(set)
    for conflict in find_conflicts(target_times, interval_hours):
        if conflict.target_a == conflict.target_b:
            continue
        graph[conflict.target_a].add(conflict.target_b)
        graph[conflict.target_b].add(conflict.target_a)
    return graph
