"""
Creative Review Storage
=======================
Flat JSON document store for projects, creatives and comments.

All projects live in a single ``projects.json`` file. Reads and
read-modify-write cycles are serialized with a process-local lock and
writes are atomic (temp file + rename). Edits racing across separate
processes remain last-write-wins.
"""

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Any

from config_logging import get_config, get_logger, NotFoundError, ProcessingError

from .models import Creative, Project

logger = get_logger('creative_review.store')


def find_project(projects: List[Project], project_id: str) -> Project:
    """Look up a project or raise NotFoundError."""
    for project in projects:
        if project.id == project_id:
            return project
    raise NotFoundError("Project not found", resource='project', id=project_id)


def find_creative(project: Project, creative_id: str) -> Creative:
    """Look up a creative within a project or raise NotFoundError."""
    creative = project.find_creative(creative_id)
    if creative is None:
        raise NotFoundError("Creative not found", resource='creative', id=creative_id)
    return creative


class ProjectStore:
    """
    Persistent storage for review projects.

    Stores:
    - Projects and their creatives
    - Caption / image text revision logs
    - Comments, including pins and replies
    """

    def __init__(self, path: Optional[str] = None):
        """Initialize storage with the JSON document path."""
        if path is None:
            path = str(get_config().projects_file)
        self.path = Path(path)
        self._lock = threading.RLock()
        self._ensure_file()

    def _ensure_file(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write_raw([])

    def _read_raw(self) -> List[Dict[str, Any]]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Project store is corrupt: {e}", path=str(self.path))
            raise ProcessingError("Project data could not be read", stage='load')

    def _write_raw(self, data: List[Dict[str, Any]]):
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def load(self) -> List[Project]:
        """Read every project from disk."""
        with self._lock:
            return [Project.from_dict(p) for p in self._read_raw()]

    def save(self, projects: List[Project]):
        """Replace the stored projects."""
        with self._lock:
            self._write_raw([p.to_dict() for p in projects])

    @contextmanager
    def transaction(self) -> Iterator[List[Project]]:
        """
        Read-modify-write block.

        Yields the loaded projects; they are written back only if the block
        completes without raising.
        """
        with self._lock:
            projects = self.load()
            yield projects
            self.save(projects)

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def list_summaries(self) -> List[Dict[str, Any]]:
        return [p.summary() for p in self.load()]

    def get_project(self, project_id: str) -> Project:
        return find_project(self.load(), project_id)

    def create_project(self, name: str, client_name: str = "") -> Project:
        project = Project(name=name, client_name=client_name)
        with self.transaction() as projects:
            projects.append(project)
        logger.info(f"Created project {project.name}", project_id=project.id)
        return project

    def delete_project(self, project_id: str) -> Project:
        with self.transaction() as projects:
            project = find_project(projects, project_id)
            projects.remove(project)
        logger.info(f"Deleted project {project.name}", project_id=project_id)
        return project

    # -------------------------------------------------------------------------
    # Creatives
    # -------------------------------------------------------------------------

    def get_creative(self, project_id: str, creative_id: str) -> Tuple[Project, Creative]:
        project = self.get_project(project_id)
        return project, find_creative(project, creative_id)

    def add_creatives(self, project_id: str, creatives: List[Creative]) -> List[Creative]:
        with self.transaction() as projects:
            project = find_project(projects, project_id)
            project.creatives.extend(creatives)
        logger.info(f"Added {len(creatives)} creative(s)", project_id=project_id)
        return creatives

    def delete_creative(self, project_id: str, creative_id: str) -> Creative:
        with self.transaction() as projects:
            project = find_project(projects, project_id)
            creative = find_creative(project, creative_id)
            project.creatives.remove(creative)
        logger.info("Deleted creative", project_id=project_id, creative_id=creative_id)
        return creative


# Singleton instance
_store_instance: Optional[ProjectStore] = None

def get_project_store() -> ProjectStore:
    """Get singleton instance of the project store."""
    global _store_instance
    if _store_instance is None:
        _store_instance = ProjectStore()
    return _store_instance


def reset_project_store():
    """Drop the singleton (for testing)."""
    global _store_instance
    _store_instance = None
