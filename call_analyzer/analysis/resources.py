"""Resource Loader: per-framework methodology content, cached per loader.

Each framework directory in the content store may hold up to five artifacts:

  methodology.md, definition.json, scoring_examples.md,
  call_examples.md, planning_checklist.md

Every artifact is loaded independently. A missing or unreadable artifact is
logged as a warning and leaves its field absent; it never fails the load.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from call_analyzer.analysis.definitions import parse_definition
from call_analyzer.analysis.types import FrameworkResources
from call_analyzer.core.config import settings

logger = logging.getLogger(__name__)

METHODOLOGY_FILE = "methodology.md"
DEFINITION_FILE = "definition.json"
SCORING_EXAMPLES_FILE = "scoring_examples.md"
CALL_EXAMPLES_FILE = "call_examples.md"
PLANNING_CHECKLIST_FILE = "planning_checklist.md"


class ResourceStore(ABC):
    """Read access to the framework content store."""

    @abstractmethod
    def read_text(self, framework_id: str, filename: str) -> str:
        """Return the artifact's text.

        Raises:
            OSError: if the artifact does not exist or cannot be read.
        """
        ...


class FileResourceStore(ResourceStore):
    """Content store laid out as ``<base_path>/<framework_id>/<filename>``."""

    def __init__(self, base_path: Path | str | None = None):
        self.base_path = Path(base_path) if base_path else Path(settings.frameworks_path)

    def read_text(self, framework_id: str, filename: str) -> str:
        return (self.base_path / framework_id / filename).read_text(encoding="utf-8")


class ResourceLoader:
    """Loads FrameworkResources and keeps them until ``clear()`` is called."""

    def __init__(self, store: ResourceStore | None = None):
        self.store = store or FileResourceStore()
        self._cache: dict[str, FrameworkResources] = {}

    def load(self, framework_id: str) -> FrameworkResources:
        cached = self._cache.get(framework_id)
        if cached is not None:
            logger.debug("Using cached resources for %s", framework_id)
            return cached

        logger.info("Loading framework resources for %s", framework_id)

        methodology = self._read_text(framework_id, METHODOLOGY_FILE)
        definition = self._read_json(framework_id, DEFINITION_FILE)
        scoring_examples = self._read_text(framework_id, SCORING_EXAMPLES_FILE)
        call_examples = self._read_text(framework_id, CALL_EXAMPLES_FILE)
        planning_checklist = self._read_text(framework_id, PLANNING_CHECKLIST_FILE)

        resources = FrameworkResources(
            framework_id=framework_id,
            framework=parse_definition(framework_id, definition),
            methodology=methodology,
            definition=definition,
            scoring_examples=scoring_examples,
            call_examples=call_examples,
            planning_checklist=planning_checklist,
        )
        self._cache[framework_id] = resources
        return resources

    def clear(self) -> None:
        """Drop every cached entry; the next load re-reads the store."""
        logger.info("Clearing framework resource cache (%d entries)", len(self._cache))
        self._cache.clear()

    def _read_text(self, framework_id: str, filename: str) -> str | None:
        try:
            text = self.store.read_text(framework_id, filename)
        except Exception as e:
            logger.warning("Could not load %s for %s: %s", filename, framework_id, e)
            return None
        logger.info("Loaded %s for %s (%d chars)", filename, framework_id, len(text))
        return text

    def _read_json(self, framework_id: str, filename: str) -> dict | None:
        text = self._read_text(framework_id, filename)
        if text is None:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Could not parse %s for %s: %s", filename, framework_id, e)
            return None
        if not isinstance(data, dict):
            logger.warning("%s for %s is not a JSON object", filename, framework_id)
            return None
        return data
