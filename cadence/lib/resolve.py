from cadence.core.errors import AmbiguousError
from cadence.core.models import Task
from cadence.tasks import find_task

from .errors import exit_error

__all__ = ["resolve_task"]


def resolve_task(ref: str) -> Task:
    try:
        task = find_task(ref)
    except AmbiguousError as e:
        exit_error(str(e))
    if not task:
        exit_error(f"No task found: '{ref}'")
    return task
