"""Shared fixtures for testdispatch tests."""

import pytest

from testdispatch.core.executor import CaseExecutor
from testdispatch.core.models import make_record


class StubExecutor(CaseExecutor):
    """Returns canned records per case identifier and remembers run order."""

    def __init__(self, records=None, default=None):
        self.records = records or {}
        self.default = default
        self.executed = []

    def execute(self, case):
        name = str(case.identifier)
        self.executed.append(name)
        if name in self.records:
            return [dict(record) for record in self.records[name]]
        if self.default is not None:
            return [dict(record) for record in self.default]
        return [make_record("pass", case=name)]


@pytest.fixture
def stub_executor():
    """Executor passing every case with one record."""
    return StubExecutor()


@pytest.fixture
def identifiers():
    """A small discovery listing spanning two libraries."""
    return [
        "app.tests.cases.models.UserTest",
        "app.tests.cases.models.PostTest",
        "app.tests.cases.controllers.HomeTest",
        "core.tests.cases.util.SetTest",
        "core.tests.cases.util.InflectorTest",
    ]
