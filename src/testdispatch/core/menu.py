"""Navigation menu of discovered tests.

Identifiers are folded into a tree of branches keyed by path segment and
rendered through per-format Jinja2 templates.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from jinja2 import DictLoader, Environment
from markupsafe import Markup

from testdispatch.core.models import TestIdentifier


@dataclass
class Leaf:
    """A case name under its parent path."""

    name: str
    parent: Optional[TestIdentifier] = None

    @property
    def identifier(self) -> TestIdentifier:
        if self.parent is None:
            return TestIdentifier((self.name,))
        return self.parent.child(self.name)


@dataclass
class Branch:
    """A namespace whose children are kept sorted by key."""

    name: str
    path: Optional[TestIdentifier] = None
    children: dict[str, Union["Branch", Leaf]] = field(default_factory=dict)

    def insert(self, segments: tuple[str, ...], depth: int = 0) -> None:
        """Insert the identifier ``segments`` below this branch.

        ``depth`` is the index of the segment that belongs directly to
        this branch.
        """
        name = segments[depth]
        last = depth + 1 >= len(segments)

        if last:
            # A branch already registered under this name wins
            parent = TestIdentifier(segments[:depth]) if depth else None
            self.children.setdefault(name, Leaf(name=name, parent=parent))
        else:
            node = self.children.get(name)
            if not isinstance(node, Branch):
                node = Branch(name=name, path=TestIdentifier(segments[: depth + 1]))
                self.children[name] = node
            node.insert(segments, depth + 1)

        self.children = dict(sorted(self.children.items()))

    def to_dict(self) -> dict:
        """Plain nested form: branches become dicts, leaves become None."""
        return {
            key: child.to_dict() if isinstance(child, Branch) else None
            for key, child in self.children.items()
        }


@dataclass(frozen=True)
class MenuFormat:
    """Templates used to render one output format."""

    case: str
    group: str
    wrap: str
    autoescape: bool = False


HTML_FORMAT = MenuFormat(
    case='<li><a href="?case={{ identifier }}">{{ name }}</a></li>',
    group='<li><a href="?group={{ path }}">{{ name }}</a>{{ children }}</li>',
    wrap="<ul>{{ body }}</ul>",
    autoescape=True,
)

TEXT_FORMAT = MenuFormat(
    case="-case {{ identifier }}\n",
    group="-group {{ path }} ({{ name }})\n{{ children }}\n",
    wrap="\n{{ body }}\n",
)

DEFAULT_FORMATS = {"html": HTML_FORMAT, "text": TEXT_FORMAT}


class _Renderer:
    """Renders a tree with the templates of one format."""

    def __init__(self, menu_format: MenuFormat):
        self.env = Environment(
            loader=DictLoader(
                {
                    "case": menu_format.case,
                    "group": menu_format.group,
                    "wrap": menu_format.wrap,
                }
            ),
            autoescape=menu_format.autoescape,
            keep_trailing_newline=True,
        )

    def _render(self, template: str, **context) -> Markup:
        return Markup(self.env.get_template(template).render(**context))

    def node(self, node: Union[Branch, Leaf]) -> Markup:
        if isinstance(node, Leaf):
            return self._render(
                "case",
                name=node.name,
                parent=str(node.parent or ""),
                identifier=str(node.identifier),
            )
        return self._render(
            "group",
            path=str(node.path),
            name=node.name,
            children=self.children(node),
        )

    def children(self, branch: Branch) -> Markup:
        body = Markup("").join(self.node(child) for child in branch.children.values())
        return self._render("wrap", body=body)

    def library(self, node: Union[Branch, Leaf]) -> Markup:
        return self._render("wrap", body=self.node(node))


class MenuBuilder:
    """Builds the test menu from a flat list of identifiers."""

    def __init__(self, formats: Optional[dict[str, MenuFormat]] = None):
        self.formats = dict(DEFAULT_FORMATS if formats is None else formats)

    def register(self, name: str, menu_format: MenuFormat) -> None:
        self.formats[name] = menu_format

    def tree(self, identifiers: Iterable[Union[TestIdentifier, str]]) -> Branch:
        """Fold identifiers into a tree whose top level is keyed by library."""
        root = Branch(name="")
        for identifier in identifiers:
            root.insert(TestIdentifier.parse(identifier).segments)
        return root

    def build(
        self,
        identifiers: Iterable[Union[TestIdentifier, str]],
        fmt: str,
    ) -> Optional[str]:
        """Render the menu in ``fmt``.

        Returns:
            The rendered menu, or None for an unknown format
        """
        menu_format = self.formats.get(fmt)
        if menu_format is None:
            return None

        renderer = _Renderer(menu_format)
        root = self.tree(identifiers)
        parts = []

        for library in root.children.values():
            parts.append(renderer.library(library))

        return str(Markup("").join(parts))
