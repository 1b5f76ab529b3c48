"""Analyze recorded sales calls against sales methodology frameworks."""

from call_analyzer.analysis.orchestrator import FrameworkAnalyzer, safe_framework_analysis
from call_analyzer.analysis.resources import FileResourceStore, ResourceLoader
from call_analyzer.collectors.base import CallDataProvider, GenerationClient
from call_analyzer.collectors.registry import create_generation_client

__version__ = "0.1.0"

__all__ = [
    "CallDataProvider",
    "FileResourceStore",
    "FrameworkAnalyzer",
    "GenerationClient",
    "ResourceLoader",
    "create_generation_client",
    "safe_framework_analysis",
]
