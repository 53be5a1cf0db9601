"""Test run orchestration."""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from testdispatch.core.discovery import Discovery
from testdispatch.core.errors import FilterAnalyzeError, FilterApplyError
from testdispatch.core.executor import CaseExecutor
from testdispatch.core.group import Group
from testdispatch.core.menu import MenuBuilder
from testdispatch.core.models import ResultRecord, Stats
from testdispatch.core.options import RunOptions
from testdispatch.core.pipeline import Filter, FilterPipeline, PipelineEntry
from testdispatch.core.resolver import GroupResolver
from testdispatch.core.stats import aggregate
from testdispatch.logging import get_logger

logger = get_logger(__name__)


def _default_filters() -> dict[str, Filter]:
    from testdispatch.filters import get_default_filters

    return get_default_filters()


@dataclass
class DispatcherConfig:
    """Collaborators injected into the Dispatcher."""

    executor: CaseExecutor
    discovery: Optional[Discovery] = None
    filters: dict[str, Filter] = field(default_factory=_default_filters)
    resolver_class: type[GroupResolver] = GroupResolver
    menu_builder: MenuBuilder = field(default_factory=MenuBuilder)


@dataclass
class DispatchResult:
    """Raw results of a run plus each filter's analysis."""

    title: str
    results: list[ResultRecord] = field(default_factory=list)
    filters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "results": list(self.results),
            "filters": {
                name: value.to_dict() if isinstance(value, FilterAnalyzeError) else value
                for name, value in self.filters.items()
            },
        }


class Dispatcher:
    """Runs test cases or groups through the filter pipeline."""

    def __init__(self, config: DispatcherConfig):
        self.config = config
        self.resolver = config.resolver_class(config.discovery)

    def run(
        self,
        group: Optional[Group] = None,
        options: Union[RunOptions, dict, None] = None,
        **overrides: Any,
    ) -> Optional[DispatchResult]:
        """Run a test group or a single case.

        Args:
            group: Group to run. When omitted, the group is resolved from
                the ``case`` or ``group`` option.
            options: Run options (RunOptions or a plain dict)
            **overrides: Individual options taking precedence over ``options``

        Returns:
            DispatchResult, or None when there is nothing to run

        Raises:
            ResolutionError: If the requested case or group is unknown
            FilterApplyError: If a filter is unregistered or fails to apply
        """
        options = self._options(options, overrides)
        if options.base is None:
            options = options.model_copy(update={"base": options.path})

        group = group or self.resolver.resolve(options)
        if not group:
            logger.debug("Nothing selected to run")
            return None

        title = options.title or (str(group.identifier) if group.identifier else "")
        pipeline = self.pipeline(options)

        logger.debug(f"Running '{title}' through {len(pipeline)} filters")
        results, filters = pipeline.run(group.tests(), self.config.executor)

        return DispatchResult(title=title, results=results, filters=filters)

    def pipeline(self, options: RunOptions) -> FilterPipeline:
        """Build the pipeline for the filters named in ``options``."""
        entries = []
        for spec in options.filters:
            filter_ = self.config.filters.get(spec.name)
            if filter_ is None:
                raise FilterApplyError(spec.name, "no such filter is registered")
            entries.append(PipelineEntry(filter=filter_, spec=spec))
        return FilterPipeline(entries)

    @staticmethod
    def process(results: Any) -> Stats:
        """Compile statistics for the results of a run."""
        return aggregate(results)

    def menu(self, fmt: str) -> Optional[str]:
        """Render the menu of every discovered test.

        Returns:
            The rendered menu, or None for an unknown format
        """
        identifiers = []
        if self.config.discovery is not None:
            identifiers = [test.identifier for test in self.config.discovery.discover().tests]
        return self.config.menu_builder.build(identifiers, fmt)

    @staticmethod
    def _options(options: Union[RunOptions, dict, None], overrides: dict) -> RunOptions:
        if isinstance(options, RunOptions):
            data = {name: getattr(options, name) for name in options.model_fields_set}
        else:
            data = dict(options or {})
        data.update(overrides)
        return RunOptions.model_validate(data)
