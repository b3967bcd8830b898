"""
Path selector module for record_scraper.

Compiles selector strings into structured path patterns and evaluates them
against a node tree.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import ConfigurationError
from .nodes import Node

logger = logging.getLogger(__name__)

WILDCARD = "*"

_COMPOUND_RE = re.compile(
    r"(?P<tag>[a-zA-Z][a-zA-Z0-9_-]*|\*)"
    r"(?::(?:nth-of-type\(\s*(?P<nth>[+-]?\d+)\s*\)|(?P<first>first-of-type)))?"
)


class Axis(str, Enum):
    """Traversal relation of a step to its context node."""
    CHILD = "child"
    DESCENDANT = "descendant"


@dataclass(frozen=True)
class Step:
    """
    One traversal instruction of a path pattern.

    Attributes:
        axis: Direct children or any descendant of each candidate
        tag: Required tag name, or ``*`` for any tag
        position: Optional 1-based index among the parent's children with the
            same tag (``:nth-of-type`` semantics)
    """
    axis: Axis
    tag: str = WILDCARD
    position: Optional[int] = None

    def __post_init__(self):
        if self.position is not None and self.position < 1:
            raise ConfigurationError(f"Step position must be >= 1, got {self.position}")

    def __str__(self) -> str:
        compound = self.tag
        if self.position is not None:
            compound += f":nth-of-type({self.position})"
        return compound


@dataclass(frozen=True)
class PathPattern:
    """Ordered sequence of steps evaluated left to right from a context node."""
    steps: Tuple[Step, ...] = ()

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __str__(self) -> str:
        parts = []
        for step in self.steps:
            if step.axis is Axis.CHILD:
                parts.append(">")
            parts.append(str(step))
        return " ".join(parts)

    @classmethod
    def of(cls, *steps: Step) -> "PathPattern":
        return cls(tuple(steps))


def compile_path(selector: str) -> PathPattern:
    """
    Compile a selector string into a PathPattern.

    Supports the CSS child/descendant combinator subset: tag names or ``*``,
    optionally qualified by ``:nth-of-type(n)`` or ``:first-of-type``,
    separated by whitespace (descendant) or ``>`` (child). The first compound
    is a descendant of the context unless it is preceded by ``>``.

    Args:
        selector: Selector text, e.g. ``"tbody > tr"``

    Returns:
        Compiled path pattern (empty for a blank selector)

    Raises:
        ConfigurationError: If the selector uses unsupported syntax
    """
    if not isinstance(selector, str):
        raise ConfigurationError(f"Selector must be a string, got {type(selector).__name__}")
    return _compile(selector)


@lru_cache(maxsize=256)
def _compile(selector: str) -> PathPattern:
    """Tokenize and validate a selector string; results are cached per string."""
    tokens = selector.replace(">", " > ").split()
    steps: List[Step] = []
    axis = Axis.DESCENDANT
    pending_child = False

    for token in tokens:
        if token == ">":
            if pending_child:
                raise ConfigurationError(
                    f"Invalid selector '{selector}': doubled '>' combinator",
                    context={"selector": selector},
                )
            pending_child = True
            axis = Axis.CHILD
            continue

        match = _COMPOUND_RE.fullmatch(token)
        if not match:
            raise ConfigurationError(
                f"Invalid selector '{selector}': unsupported token '{token}'",
                context={"selector": selector, "token": token},
            )

        position = None
        if match.group("nth") is not None:
            position = int(match.group("nth"))
            if position < 1:
                raise ConfigurationError(
                    f"Invalid selector '{selector}': nth-of-type index must be >= 1",
                    context={"selector": selector, "token": token},
                )
        elif match.group("first"):
            position = 1

        tag = match.group("tag")
        steps.append(Step(axis=axis, tag=tag if tag == WILDCARD else tag.lower(), position=position))
        axis = Axis.DESCENDANT
        pending_child = False

    if pending_child:
        raise ConfigurationError(
            f"Invalid selector '{selector}': dangling '>' combinator",
            context={"selector": selector},
        )

    return PathPattern(tuple(steps))


# Child indexes from the context down to a node; lexicographic order of
# paths is pre-order document order.
NodePath = Tuple[int, ...]


def _match_children(parent: Node, parent_path: NodePath, step: Step) -> Iterator[Tuple[NodePath, Node, bool]]:
    """Yield every child of ``parent`` with its path and whether it satisfies ``step``."""
    seen: Dict[str, int] = {}
    for index, child in enumerate(parent.children):
        tag = child.tag
        seen[tag] = seen.get(tag, 0) + 1
        if step.tag != WILDCARD and step.tag != tag:
            ok = False
        else:
            ok = step.position is None or seen[tag] == step.position
        yield parent_path + (index,), child, ok


def _expand(path: NodePath, candidate: Node, step: Step) -> Iterator[Tuple[NodePath, Node]]:
    """Yield the nodes ``step`` reaches from one candidate, in document order."""
    if step.axis is Axis.CHILD:
        for child_path, child, ok in _match_children(candidate, path, step):
            if ok:
                yield child_path, child
        return

    # Pre-order walk of the candidate's subtree, candidate itself excluded
    stack = [_match_children(candidate, path, step)]
    while stack:
        try:
            child_path, child, ok = next(stack[-1])
        except StopIteration:
            stack.pop()
            continue
        if ok:
            yield child_path, child
        stack.append(_match_children(child, child_path, step))


def select(context: Node, pattern: PathPattern) -> List[Node]:
    """
    Evaluate a path pattern against a context node.

    Nodes are told apart by their position in the tree, not by object
    identity, so Node implementations may build child wrappers on every
    access.

    Args:
        context: Node the pattern is evaluated from
        pattern: Compiled path pattern

    Returns:
        Matching nodes, without duplicates, in document order. An empty
        pattern returns ``[context]``; missing structure yields ``[]``.
    """
    working: List[Tuple[NodePath, Node]] = [((), context)]

    for step in pattern.steps:
        if not working:
            break

        gathered: Dict[NodePath, Node] = {}
        for path, candidate in working:
            for node_path, node in _expand(path, candidate, step):
                gathered.setdefault(node_path, node)

        working = list(gathered.items())
        # Nested candidates can interleave their matches
        if len(working) > 1:
            working.sort(key=lambda entry: entry[0])

    return [node for _, node in working]
