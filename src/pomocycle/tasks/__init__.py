"""Task ledger."""

from pomocycle.tasks.ledger import MAX_TASK_LENGTH, TaskLedger, validate_task_text

__all__ = ["TaskLedger", "MAX_TASK_LENGTH", "validate_task_text"]
