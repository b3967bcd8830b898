"""
Node model for record_scraper.

Defines the read-only tree contract the extraction core works against and the
concrete Element model produced by the HTML parser.
"""

from typing import Dict, Iterator, List, Mapping, Protocol, Sequence, Tuple, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


@runtime_checkable
class Node(Protocol):
    """
    Capabilities the extraction core needs from a document node.

    Any tree exposing these four read-only attributes can be queried; the
    core never writes to a node. Nodes are identified by their position in the
    tree, so ``children`` must return the same children in the same order on
    every read, but may build new wrapper objects each time.
    """

    @property
    def tag(self) -> str: ...

    @property
    def attrs(self) -> Mapping[str, str]: ...

    @property
    def children(self) -> Sequence["Node"]: ...

    @property
    def text(self) -> str: ...


class Element(BaseModel):
    """
    Immutable element of a parsed document.

    ``contents`` keeps element children and text chunks interleaved in
    document order, so ``text`` reproduces the visible text exactly.
    """
    tag: str
    attrs: Dict[str, str] = Field(default_factory=dict)
    contents: Tuple[Union["Element", str], ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def children(self) -> List["Element"]:
        """Element children in document order (text chunks excluded)."""
        return [item for item in self.contents if isinstance(item, Element)]

    @property
    def text(self) -> str:
        """Concatenation of all descendant text in document order."""
        return "".join(self.iter_text())

    def iter_text(self) -> Iterator[str]:
        """Yield descendant text chunks in document order."""
        stack = [iter(self.contents)]
        while stack:
            try:
                item = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue
            if isinstance(item, str):
                yield item
            else:
                stack.append(iter(item.contents))


Element.model_rebuild()
