"""
Project I/O Module

Best-effort project persistence. Projects are kept under a single key of
a small JSON key-value store, mirroring how the web editor keeps them in
local storage.

Only structural metadata is written: asset payloads (blob/data URLs) can
be huge and short-lived, so every persisted project has ``assets=[]``.
Reloading such a project gives a timeline whose clips dangle, which the
engine tolerates.
"""

import json
import logging
import os
import time
from typing import Any, Dict, List

from vn_editor.config import PROJECTS_FILE
from vn_editor.models.project import Project

logger = logging.getLogger(__name__)

STORAGE_KEY = "vn-editor-projects"

# Project file version for migration support
PROJECT_VERSION = "1.0.0"


class ProjectStore:
    """
    A JSON file used as a key-value store.

    Args:
        path: Location of the store file
        key: Key under which the project list is kept
    """

    def __init__(self, path: str = PROJECTS_FILE, key: str = STORAGE_KEY):
        self.path = path
        self.key = key

    def save_project(self, project: Project) -> bool:
        """
        Upsert a project by ID.

        Never raises: a failed save is logged and editing continues.

        Returns:
            True if successful, False otherwise
        """
        try:
            project.last_modified = time.time()
            entries = [
                entry for entry in self._read_entries()
                if entry.get("id") != project.id
            ]
            entries.append(project.to_dict(include_assets=False))
            self._write_entries(entries)
            logger.info(f"Saved project '{project.name}'")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save project structure: {e}")
            return False

    def load_projects(self) -> List[Project]:
        """All stored projects; an empty list if the store is missing or unreadable."""
        projects = []
        for entry in self._read_entries():
            try:
                projects.append(Project.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable project entry: {e}")
        return projects

    def _read_entries(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Invalid project store {self.path}: {e}")
            return []

        entries = data.get(self.key, []) if isinstance(data, dict) else []
        if not isinstance(entries, list):
            logger.warning(f"Project store {self.path} has no project list under '{self.key}'")
            return []
        return [entry for entry in entries if isinstance(entry, dict)]

    def _write_entries(self, entries: List[Dict[str, Any]]) -> None:
        data: Dict[str, Any] = {}
        if os.path.exists(self.path):
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    existing = json.load(f)
                if isinstance(existing, dict):
                    data = existing
            except (OSError, ValueError) as e:
                logger.debug(f"Overwriting unreadable project store: {e}")

        data["version"] = PROJECT_VERSION
        data[self.key] = [dict(entry, assets=[]) for entry in entries]

        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)


_default_store = ProjectStore()


def save_project(project: Project) -> bool:
    """Save to the default store in the user's config directory."""
    return _default_store.save_project(project)


def load_projects() -> List[Project]:
    """Load every project from the default store."""
    return _default_store.load_projects()
