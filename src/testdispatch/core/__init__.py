"""Core test dispatch functionality."""

from testdispatch.core.dispatcher import Dispatcher, DispatcherConfig, DispatchResult
from testdispatch.core.errors import (
    DispatchError,
    FilterAnalyzeError,
    FilterApplyError,
    ResolutionError,
)
from testdispatch.core.group import Case, Group, TestSet
from testdispatch.core.menu import MenuBuilder
from testdispatch.core.models import ResultKind, Stats, TestIdentifier
from testdispatch.core.pipeline import Filter, FilterPipeline
from testdispatch.core.stats import aggregate, classify

__all__ = [
    "Case",
    "DispatchError",
    "DispatchResult",
    "Dispatcher",
    "DispatcherConfig",
    "Filter",
    "FilterAnalyzeError",
    "FilterApplyError",
    "FilterPipeline",
    "Group",
    "MenuBuilder",
    "ResolutionError",
    "ResultKind",
    "Stats",
    "TestIdentifier",
    "TestSet",
    "aggregate",
    "classify",
]
