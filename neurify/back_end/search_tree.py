#===- neurify/back_end/search_tree.py - Branch-and-Bound Search Tree ----====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Node-indexed tree with parent/child links and a live leaf set kept in
#   insertion order. Holds the sub-domains of a branch-and-bound run.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
from collections import deque
from typing import Dict, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class SearchTree(Generic[T]):
    """
    Tree whose nodes are identified by the integer returned on insertion.

    Invariants:
        - every live non-root node has exactly one live parent;
        - `leaves()` is exactly the set of live nodes without children;
        - `size` is the number of live nodes.

    Deleted ids are never reused. All traversals are iterative.
    """

    ROOT = 0

    def __init__(self, data: T):
        self._data: List[Optional[T]] = [data]
        self._parent: List[Optional[int]] = [None]
        self._children: List[List[int]] = [[]]
        # extra parents added by connect()
        self._linked: List[List[int]] = [[]]
        self._alive: List[bool] = [True]
        # dict keys double as an ordered set
        self._leaves: Dict[int, None] = {self.ROOT: None}
        self.size = 1

    # --- Accessors ---

    def data(self, x: int) -> T:
        self._check_alive(x)
        return self._data[x]

    def set_data(self, x: int, data: T) -> None:
        self._check_alive(x)
        self._data[x] = data

    def parent(self, x: int) -> Optional[int]:
        self._check_alive(x)
        return self._parent[x]

    def children(self, x: int) -> List[int]:
        self._check_alive(x)
        return [c for c in self._children[x] if self._alive[c]]

    def is_alive(self, x: int) -> bool:
        return 0 <= x < len(self._alive) and self._alive[x]

    def is_leaf(self, x: int) -> bool:
        return x in self._leaves

    def leaves(self) -> List[int]:
        return list(self._leaves)

    def depth(self, x: int) -> int:
        self._check_alive(x)
        d = 0
        while self._parent[x] is not None:
            x = self._parent[x]
            d += 1
        return d

    def _check_alive(self, x: int) -> None:
        if not self.is_alive(x):
            raise KeyError(f"Node {x} is not in the tree")

    # --- Mutation ---

    def add_child(self, parent: int, data: T) -> int:
        self._check_alive(parent)
        x = len(self._data)
        self._data.append(data)
        self._parent.append(parent)
        self._children.append([])
        self._linked.append([])
        self._alive.append(True)
        self._children[parent].append(x)
        self._leaves.pop(parent, None)
        self._leaves[x] = None
        self.size += 1
        return x

    def connect(self, parent: int, x: int) -> int:
        """Attach an existing node as an extra child of `parent`; the recorded parent of x is unchanged."""
        self._check_alive(parent)
        self._check_alive(x)
        self._children[parent].append(x)
        self._linked[x].append(parent)
        self._leaves.pop(parent, None)
        return x

    def delete_subtree(self, x: int) -> int:
        """
        Remove x and all its descendants.

        Returns:
            Number of nodes removed.
        """
        self._check_alive(x)
        p = self._parent[x]
        if p is None:
            raise ValueError("The root cannot be deleted")

        removed = 0
        parents = {}
        stack = [x]
        while stack:
            y = stack.pop()
            if not self._alive[y]:
                continue
            self._alive[y] = False
            self._leaves.pop(y, None)
            removed += 1
            for q in [self._parent[y]] + self._linked[y]:
                if q is not None:
                    parents[q] = None
            stack.extend(self._children[y])
            self._children[y] = []
            self._linked[y] = []
        self.size -= removed

        # Every surviving node that linked to a removed one drops the edge.
        for q in parents:
            if not self._alive[q]:
                continue
            self._children[q] = [c for c in self._children[q] if self._alive[c]]
            if not self._children[q]:
                self._leaves[q] = None
        self._parent[x] = None
        return removed

    def delete_all_children(self, x: int) -> int:
        self._check_alive(x)
        removed = 0
        for c in list(self._children[x]):
            if self._alive[c]:
                removed += self.delete_subtree(c)
        return removed

    # --- Traversal ---

    def walk(self, x: int = ROOT) -> Iterator[int]:
        """Pre-order traversal of the subtree rooted at x."""
        self._check_alive(x)
        stack = [x]
        while stack:
            y = stack.pop()
            yield y
            stack.extend(c for c in reversed(self._children[y]) if self._alive[c])

    def calc_subtree_size(self, x: int = ROOT) -> int:
        """Fresh count of the nodes under x, x included."""
        return sum(1 for _ in self.walk(x))

    def format_tree(self, x: int = ROOT, with_data: bool = False) -> str:
        """Render one `parent->child` line per edge, breadth-first."""
        self._check_alive(x)
        lines = []
        queue = deque([x])
        while queue:
            y = queue.popleft()
            for c in self.children(y):
                if with_data:
                    lines.append(f"{self._data[y]}->{self._data[c]}")
                else:
                    lines.append(f"{y}->{c}")
                queue.append(c)
        return "\n".join(lines)

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"SearchTree(size={self.size}, leaves={len(self._leaves)})"
