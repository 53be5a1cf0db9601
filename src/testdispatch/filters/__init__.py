"""Built-in filters, registered by name."""

from testdispatch.core.pipeline import Filter
from testdispatch.filters.ordering import LimitFilter, RepeatFilter, ReverseFilter, ShuffleFilter
from testdispatch.filters.reporting import ProfilerFilter, SummaryFilter
from testdispatch.filters.selection import MatchFilter

BUILTIN_FILTERS: dict[str, type[Filter]] = {
    cls.name: cls
    for cls in (
        ReverseFilter,
        LimitFilter,
        RepeatFilter,
        ShuffleFilter,
        MatchFilter,
        SummaryFilter,
        ProfilerFilter,
    )
}


def get_default_filters() -> dict[str, Filter]:
    """Return a fresh registry of the built-in filters."""
    return {name: cls() for name, cls in BUILTIN_FILTERS.items()}


__all__ = [
    "BUILTIN_FILTERS",
    "get_default_filters",
    "LimitFilter",
    "MatchFilter",
    "ProfilerFilter",
    "RepeatFilter",
    "ReverseFilter",
    "ShuffleFilter",
    "SummaryFilter",
]
