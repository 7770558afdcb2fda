"""Persistence collaborators for projects.

The ledger itself only works on in-memory :class:`Project` values; a store
is handed projects to keep and returns independent copies on load.
"""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List

from .io import project_from_dict, project_to_dict
from .model import Project
from .pricing import price_project
from .utils import ensure_directories, timestamp

logger = logging.getLogger(__name__)


@dataclass
class ProjectSummary:
    """Dashboard row describing a saved project."""

    id: int
    client: str
    title: str
    total: float
    status: str
    saved_at: str


def summarise(project: Project, status: str = "Draft") -> ProjectSummary:
    return ProjectSummary(
        id=project.id,
        client=project.client_name or "Untitled Project",
        title=project.title,
        total=price_project(project).total_with_tax,
        status=status,
        saved_at=timestamp(),
    )


class ProjectStore(ABC):
    """Abstract base class that all project stores must implement."""

    @abstractmethod
    def load(self, project_id: int) -> Project:
        """Return the stored project; unknown ids raise :class:`KeyError`."""

    @abstractmethod
    def save(self, project: Project, status: str = "Draft") -> None:
        """Store ``project``, replacing any previous version."""

    @abstractmethod
    def list_summaries(self) -> List[ProjectSummary]:
        """Summaries of stored projects, most recently saved first."""


class InMemoryProjectStore(ProjectStore):
    """Dictionary-backed store, mainly for tests and interactive sessions."""

    def __init__(self) -> None:
        self._projects: Dict[int, Project] = {}
        self._summaries: List[ProjectSummary] = []

    def load(self, project_id: int) -> Project:
        if project_id not in self._projects:
            raise KeyError(f"Project {project_id} not found")
        return copy.deepcopy(self._projects[project_id])

    def save(self, project: Project, status: str = "Draft") -> None:
        self._projects[project.id] = copy.deepcopy(project)
        self._summaries = [entry for entry in self._summaries if entry.id != project.id]
        self._summaries.insert(0, summarise(project, status))

    def list_summaries(self) -> List[ProjectSummary]:
        return list(self._summaries)


class JsonProjectStore(ProjectStore):
    """Stores each project as ``<directory>/project_<id>.json``."""

    INDEX_NAME = "index.json"

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        ensure_directories([self.directory])

    def _project_path(self, project_id: int) -> Path:
        return self.directory / f"project_{project_id}.json"

    def _index_path(self) -> Path:
        return self.directory / self.INDEX_NAME

    def load(self, project_id: int) -> Project:
        path = self._project_path(project_id)
        if not path.exists():
            raise KeyError(f"Project {project_id} not found")
        with path.open("r", encoding="utf-8") as handle:
            return project_from_dict(json.load(handle))

    def save(self, project: Project, status: str = "Draft") -> None:
        path = self._project_path(project.id)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(project_to_dict(project), handle, ensure_ascii=False, indent=2)

        summaries = [entry for entry in self.list_summaries() if entry.id != project.id]
        summaries.insert(0, summarise(project, status))
        with self._index_path().open("w", encoding="utf-8") as handle:
            json.dump([asdict(entry) for entry in summaries], handle, ensure_ascii=False, indent=2)
        logger.info("Saved project %s to %s", project.id, path)

    def list_summaries(self) -> List[ProjectSummary]:
        index_path = self._index_path()
        if not index_path.exists():
            return []
        with index_path.open("r", encoding="utf-8") as handle:
            return [ProjectSummary(**entry) for entry in json.load(handle)]


__all__ = [
    "InMemoryProjectStore",
    "JsonProjectStore",
    "ProjectStore",
    "ProjectSummary",
    "summarise",
]
