"""Framework registry: recognized framework ids and definition parsing."""

from __future__ import annotations

import logging
from typing import Any

from call_analyzer.analysis.types import FrameworkDefinition

logger = logging.getLogger(__name__)

VALID_FRAMEWORKS: tuple[str, ...] = (
    "command_of_the_message",
    "great_demo",
    "demo2win",
    "miro_value_selling",
)


def is_valid_framework(framework_id: str) -> bool:
    return framework_id in VALID_FRAMEWORKS


def fallback_definition(framework_id: str) -> FrameworkDefinition:
    """Minimal definition used when definition.json is missing or unreadable."""
    display = framework_id.replace("_", " ").title()
    return FrameworkDefinition(
        framework_id=framework_id,
        name=display,
        display_name=display,
        description=f"Framework definition for {framework_id} (fallback)",
        is_fallback=True,
    )


def parse_definition(framework_id: str, data: dict[str, Any] | None) -> FrameworkDefinition:
    """Parse a raw definition document, falling back to the minimal definition."""
    if not data:
        return fallback_definition(framework_id)

    try:
        return FrameworkDefinition.from_dict(framework_id, data)
    except (KeyError, TypeError, AttributeError) as e:
        logger.warning("Malformed definition for %s (%s), using fallback definition", framework_id, e)
        return fallback_definition(framework_id)
