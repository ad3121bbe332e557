# -*- coding: utf-8 -*-
import typing as t

from planner_engine.models import TimeInterval


def merge_intervals(intervals: t.Iterable[TimeInterval]) -> list[TimeInterval]:
    """Merges overlapping or touching intervals.

    :param intervals: Busy intervals in any order.
    :return: The smallest ordered list of disjoint intervals covering the same time.
    """
    merged: list[TimeInterval] = []
    for current in sorted(intervals, key=lambda i: i.start):
        if merged and current.start <= merged[-1].end:
            # Touching intervals merge too, a zero-length gap is not free time
            last = merged[-1]
            merged[-1] = TimeInterval(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged
