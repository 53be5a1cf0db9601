"""Resolution of run requests into executable test groups."""

from typing import Optional

from testdispatch.core.discovery import DiscoveredTest, Discovery
from testdispatch.core.errors import ResolutionError
from testdispatch.core.group import Case, Group
from testdispatch.core.models import TestIdentifier
from testdispatch.core.options import RunOptions
from testdispatch.logging import get_logger

logger = get_logger(__name__)


class GroupResolver:
    """Builds the Group to run from a case or a list of group identifiers."""

    def __init__(self, discovery: Optional[Discovery] = None):
        """Initialize the resolver.

        Args:
            discovery: Listing used to look up cases and expand groups.
                Without it cases are built straight from their identifier
                and groups cannot be expanded.
        """
        self.discovery = discovery

    def resolve(self, options: RunOptions) -> Optional[Group]:
        """Resolve the selection in ``options``.

        Returns:
            A Group wrapping the selection, or None when neither a case
            nor a group was requested.

        Raises:
            ResolutionError: If an identifier cannot be constructed
        """
        if options.case:
            return Group(items=[self.case(options.case)])
        if options.group:
            return Group(items=[self.group(name) for name in options.group])
        return None

    def case(self, name: str) -> Case:
        identifier = self._parse(name)

        if self.discovery is None:
            return Case(identifier)

        found = self.discovery.find(identifier)
        if found is None:
            raise ResolutionError(f"Unknown test case: {name}")
        return Case(found.identifier, target=found.target)

    def group(self, name: str) -> Group:
        """Expand a group identifier into its subtree of discovered cases."""
        identifier = self._parse(name)

        if self.discovery is None:
            raise ResolutionError(f"Cannot expand group '{name}' without a discovery service")

        tests = self.discovery.locate(identifier)
        if not tests:
            raise ResolutionError(f"Unknown test group: {name}")

        logger.debug(f"Group {name} expanded to {len(tests)} cases")
        return self._subtree(identifier, tests)

    def _subtree(self, identifier: TestIdentifier, tests: list[DiscoveredTest]) -> Group:
        """Nest cases by their next segment, in order of first appearance."""
        depth = len(identifier)
        children: dict[str, list[DiscoveredTest]] = {}
        items = []

        for test in tests:
            if len(test.identifier) == depth:
                # The group identifier names a case itself
                items.append(Case(test.identifier, target=test.target))
                continue
            segment = test.identifier.segments[depth]
            if segment not in children:
                children[segment] = []
                items.append(segment)
            children[segment].append(test)

        group = Group(identifier=identifier)
        for item in items:
            if isinstance(item, Case):
                group.items.append(item)
                continue

            members = children[item]
            child = identifier.child(item)
            if len(members) == 1 and members[0].identifier == child:
                group.items.append(Case(members[0].identifier, target=members[0].target))
            else:
                group.items.append(self._subtree(child, members))

        return group

    @staticmethod
    def _parse(name: str) -> TestIdentifier:
        try:
            return TestIdentifier.parse(name)
        except ValueError as e:
            raise ResolutionError(f"Invalid test identifier '{name}': {e}") from e
