"""Task selection policies."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from todo_goblin.models.domain import Task


class TaskSelector(ABC):
    """Chooses the single task one run works on."""

    @abstractmethod
    def select(self, tasks: Sequence[Task]) -> Task | None:
        pass


class FirstAvailableSelector(TaskSelector):
    """Pick the first eligible task in catalog order."""

    def select(self, tasks: Sequence[Task]) -> Task | None:
        return tasks[0] if tasks else None
