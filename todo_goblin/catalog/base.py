"""Backlog source interface."""

from abc import ABC, abstractmethod

from todo_goblin.config.settings import ProjectConfig
from todo_goblin.models.domain import Task


class TaskCatalog(ABC):
    """Reads the normalized candidate tasks of one project.

    Readers never raise for an absent or unreadable source: they log the
    cause and return an empty list.
    """

    @abstractmethod
    async def read(self, project_name: str, project: ProjectConfig) -> list[Task]:
        pass
