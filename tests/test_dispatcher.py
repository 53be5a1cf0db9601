"""Tests for the dispatcher."""

import pytest

from testdispatch.core.discovery import StaticDiscovery
from testdispatch.core.dispatcher import Dispatcher, DispatcherConfig, DispatchResult
from testdispatch.core.errors import FilterAnalyzeError, FilterApplyError, ResolutionError
from testdispatch.core.group import Case, Group
from testdispatch.core.options import RunOptions
from testdispatch.core.pipeline import Filter
from testdispatch.core.resolver import GroupResolver

from conftest import StubExecutor


@pytest.fixture
def executor():
    return StubExecutor(
        records={"Lib.Tests.FooTest": [{"kind": "pass"}, {"kind": "fail", "message": "x"}]}
    )


@pytest.fixture
def dispatcher(executor, identifiers):
    return Dispatcher(DispatcherConfig(executor=executor, discovery=StaticDiscovery(identifiers)))


class TestRun:
    """Tests for Dispatcher.run."""

    def test_end_to_end_case(self, executor):
        """Test running one case without filters."""
        dispatcher = Dispatcher(DispatcherConfig(executor=executor))

        result = dispatcher.run(None, {"case": "Lib.Tests.FooTest", "filters": {}})

        assert isinstance(result, DispatchResult)
        assert result.title == "Lib.Tests.FooTest"
        assert result.results == [{"kind": "pass"}, {"kind": "fail", "message": "x"}]
        assert result.filters == {}

        stats = dispatcher.process(result.results)
        assert stats.asserts == 2
        assert len(stats.passes) == 1
        assert len(stats.fails) == 1
        assert len(stats.errors) == 1

    @pytest.mark.parametrize("options", [None, {}, {"filters": ["summary"]}, {"path": "elsewhere"}])
    def test_nothing_to_run(self, dispatcher, options):
        assert dispatcher.run(options=options) is None

    def test_group_title(self, dispatcher):
        result = dispatcher.run(options={"group": ["core", "app.tests.cases.controllers"]})
        assert result.title == "core, app.tests.cases.controllers"
        assert len(result.results) == 3

    def test_overrides(self, dispatcher):
        result = dispatcher.run(options={"group": "core"}, case="app.tests.cases.models.UserTest")
        assert result.title == "app.tests.cases.models.UserTest"

    def test_run_options_instance(self, dispatcher):
        result = dispatcher.run(options=RunOptions(group="core", filters=["reverse"]))
        assert [r["case"] for r in result.results] == [
            "core.tests.cases.util.InflectorTest",
            "core.tests.cases.util.SetTest",
        ]

    def test_explicit_group(self, dispatcher, executor):
        """Test that a passed group is run instead of resolving options."""
        group = Group(items=[Case("x.One"), Case("x.Two")])

        result = dispatcher.run(group, {"case": "Lib.Tests.FooTest"})

        assert executor.executed == ["x.One", "x.Two"]
        assert result.title == "Lib.Tests.FooTest"

    def test_filter_keys_match_configuration(self, dispatcher):
        result = dispatcher.run(
            options={
                "group": "app",
                "filters": {"summary": None, "reverse": None, "limit": {"apply": {"count": 1}}},
            }
        )

        assert list(result.filters) == ["summary", "reverse", "limit"]
        assert len(result.results) == 1
        assert result.filters["summary"]["asserts"] == 1

    def test_unknown_filter(self, dispatcher, executor):
        with pytest.raises(FilterApplyError):
            dispatcher.run(options={"group": "app", "filters": ["nope"]})
        assert executor.executed == []

    def test_unknown_case(self, dispatcher):
        with pytest.raises(ResolutionError):
            dispatcher.run(options={"case": "app.Missing"})

    def test_analyze_failure_keeps_results(self, executor, identifiers):
        class Broken(Filter):
            name = "broken"

            def analyze(self, results, options):
                raise ValueError("bad analysis")

        dispatcher = Dispatcher(
            DispatcherConfig(
                executor=executor,
                discovery=StaticDiscovery(identifiers),
                filters={"broken": Broken()},
            )
        )
        result = dispatcher.run(options={"group": "core", "filters": "broken"})

        assert len(result.results) == 2
        assert isinstance(result.filters["broken"], FilterAnalyzeError)
        assert "bad analysis" in result.to_dict()["filters"]["broken"]["error"]

    def test_custom_resolver_class(self, executor):
        class FixedResolver(GroupResolver):
            def resolve(self, options):
                return Group(items=[Case("fixed.Case")])

        dispatcher = Dispatcher(DispatcherConfig(executor=executor, resolver_class=FixedResolver))
        result = dispatcher.run()

        assert executor.executed == ["fixed.Case"]
        assert result.title == ""


class TestMenu:
    """Tests for Dispatcher.menu."""

    def test_menu_from_discovery(self, dispatcher):
        rendered = dispatcher.menu("text")
        assert "-group app (app)\n" in rendered
        assert "-case core.tests.cases.util.SetTest\n" in rendered

    def test_unknown_format(self, dispatcher):
        assert dispatcher.menu("pdf") is None

    def test_without_discovery(self, executor):
        dispatcher = Dispatcher(DispatcherConfig(executor=executor))
        assert dispatcher.menu("text") == ""
