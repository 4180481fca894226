"""
In-memory rendition of the list query used by the relational backend.

Backends that cannot push filtering/ordering down to a store (JSON file,
in-memory dict) run the loaded task set through these functions so that
every backend returns rows in the same order for the same TaskFilter.
"""
from __future__ import annotations
from typing import Callable, Iterable, List, Tuple

from tasklist.domain.task_models import Task, TaskFilter, TaskSortKey, TaskStats, TaskStatusFilter


def filter_tasks(tasks: Iterable[Task], status: str) -> List[Task]:
    if status == TaskStatusFilter.active:
        return [t for t in tasks if not t.done]
    if status == TaskStatusFilter.completed:
        return [t for t in tasks if t.done]
    # "", "all" and anything unrecognized
    return list(tasks)


def order_key(sort_by: str) -> Callable[[Task], Tuple]:
    """
    Compound ascending sort key; mirrors the SQL ORDER BY clause list:
      priority DESC  (only when sort_by == "priority")
      due_date ASC NULLS LAST  (only when sort_by == "due_date")
      created_at DESC  (always, final tie-break)
    """

    def key(task: Task) -> Tuple:
        newest_first = -task.created_at.timestamp()
        if sort_by == TaskSortKey.priority:
            return (-int(task.priority), newest_first)
        if sort_by == TaskSortKey.due_date:
            if task.due_date is None:
                return (1, 0.0, newest_first)
            return (0, task.due_date.timestamp(), newest_first)
        return (newest_first,)

    return key


def sort_tasks(tasks: Iterable[Task], sort_by: str) -> List[Task]:
    return sorted(tasks, key=order_key(sort_by))


def apply_filter(tasks: Iterable[Task], task_filter: TaskFilter) -> List[Task]:
    return sort_tasks(filter_tasks(tasks, task_filter.status), task_filter.sort_by)


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    stats = TaskStats()
    for t in tasks:
        stats.total += 1
        if t.done:
            stats.completed += 1
        else:
            stats.active += 1
    return stats
