"""Seed data written to the local store the first time DEMO mode runs."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from .models import Priority, Status, TaskRecord
from .ordering import sort_tasks

_SEED: tuple[tuple[str, int, str, str, Priority, Status], ...] = (
    ("t-1", 0, "Finalize Q3 System Architecture", "Strategy", Priority.HIGH, Status.IN_PROGRESS),
    ("t-2", 2, 'Draft "Sovereign Stack" article', "Content", Priority.MEDIUM, Status.BACKLOG),
    ("t-3", -1, "Update Vercel Environment Variables", "Development", Priority.HIGH, Status.DONE),
    ("t-4", 5, "Review operational costs", "Operations", Priority.LOW, Status.BACKLOG),
    ("t-5", 0, "Workout - Zone 2 Cardio", "Health", Priority.MEDIUM, Status.IN_PROGRESS),
)


def demo_tasks(today: date | None = None, *, now: datetime | None = None) -> list[TaskRecord]:
    """Return the demo task set with due dates relative to ``today``."""

    today = today or date.today()
    created = (now or datetime.now(tz=UTC)).isoformat()
    return sort_tasks(
        TaskRecord(
            id=task_id,
            date=(today + timedelta(days=offset)).isoformat(),
            description=description,
            project=project,
            priority=priority,
            status=status,
            created_at=created,
        )
        for task_id, offset, description, project, priority, status in _SEED
    )


__all__ = ["demo_tasks"]
