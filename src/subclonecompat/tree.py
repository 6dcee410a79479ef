from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from .models import SomaticEvent


class Subclone:
    """A node of a subclone tree.

    Each node stores only the events introduced on the edge leading to it;
    ancestors' events are never duplicated. Children are owned through the
    ``children`` list, while ``parent`` is a plain back-reference used for
    upward traversal (``None`` at the root).

    Trees are built by loaders and tests; the comparison code only reads them.
    """

    def __init__(
        self,
        name: str = "",
        events: Optional[Iterable[SomaticEvent]] = None,
        *,
        fraction: Optional[float] = None,
    ) -> None:
        self.name = name
        self.events: List[SomaticEvent] = list(events) if events is not None else []
        self.fraction = fraction
        self.children: List[Subclone] = []
        self.parent: Optional[Subclone] = None

    def __repr__(self) -> str:
        return f"Subclone(name={self.name!r}, events={len(self.events)}, children={len(self.children)})"

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_preorder())

    def add_child(self, child: Subclone) -> Subclone:
        """Attach ``child`` below this node and return it."""
        if child.parent is not None:
            raise ValueError(
                f"Subclone '{child.name}' already has a parent ('{child.parent.name}'); "
                "a node can only be attached once."
            )
        node: Optional[Subclone] = self
        while node is not None:
            if node is child:
                raise ValueError(
                    f"Subclone '{child.name}' is '{self.name}' or one of its ancestors; "
                    "attaching it would create a cycle."
                )
            node = node.parent
        child.parent = self
        self.children.append(child)
        return child

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def root(self) -> Subclone:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def depth(self) -> int:
        d = 0
        node = self
        while node.parent is not None:
            node = node.parent
            d += 1
        return d

    def iter_preorder(self) -> Iterator[Subclone]:
        """Yield this node and its descendants, parents before children."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            # reversed so that children come out in their stored order
            stack.extend(reversed(node.children))


def node_events_list(node: Subclone) -> List[SomaticEvent]:
    """Return every event carried by ``node``, inherited ones included.

    Events are returned in root-to-node order. The root's own events, if any,
    are part of the result.
    """
    lineage: List[Subclone] = []
    cur: Optional[Subclone] = node
    while cur is not None:
        lineage.append(cur)
        cur = cur.parent

    events: List[SomaticEvent] = []
    for n in reversed(lineage):
        events.extend(n.events)
    return events
