"""
Interval index for stored events.

AVL tree ordered by interval start and augmented with the maximum end of
each subtree, so overlap queries skip subtrees that end too early. All
bounds are inclusive, matching how the calendar treats event spans.
"""

from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

# T is the totally ordered coordinate type (datetime for events)
T = TypeVar('T')


class IntervalHandle(Generic[T]):
    """Node of the tree; callers keep it to delete the interval later."""
    __slots__ = ['start', 'end', 'data', 'left', 'right', 'parent', 'max_end', 'height']

    def __init__(self, start: T, end: T, data: Any):
        self.start: T = start
        self.end: T = end
        self.data: Any = data
        self.left: Optional['IntervalHandle[T]'] = None
        self.right: Optional['IntervalHandle[T]'] = None
        self.parent: Optional['IntervalHandle[T]'] = None
        self.max_end: T = end
        self.height: int = 1


class IntervalTree(Generic[T]):
    def __init__(self):
        self.root: Optional[IntervalHandle[T]] = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[IntervalHandle[T]]:
        """In-order traversal (ascending start)."""
        stack = []
        node = self.root
        while stack or node:
            while node:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    # --- Internal Utilities ---

    @staticmethod
    def _height(node: Optional[IntervalHandle[T]]) -> int:
        return node.height if node else 0

    def _update(self, node: IntervalHandle[T]):
        node.height = 1 + max(self._height(node.left), self._height(node.right))
        max_end = node.end
        if node.left and node.left.max_end > max_end:
            max_end = node.left.max_end
        if node.right and node.right.max_end > max_end:
            max_end = node.right.max_end
        node.max_end = max_end

    def _replace_child(self, parent, old, new):
        """Point parent's link to old at new (or the root if parent is None)."""
        if parent is None:
            self.root = new
        elif parent.left is old:
            parent.left = new
        else:
            parent.right = new
        if new is not None:
            new.parent = parent

    def _rotate_left(self, x: IntervalHandle[T]):
        y = x.right
        x.right = y.left
        if y.left:
            y.left.parent = x
        self._replace_child(x.parent, x, y)
        y.left = x
        x.parent = y
        self._update(x)
        self._update(y)

    def _rotate_right(self, y: IntervalHandle[T]):
        x = y.left
        y.left = x.right
        if x.right:
            x.right.parent = y
        self._replace_child(y.parent, y, x)
        x.right = y
        y.parent = x
        self._update(y)
        self._update(x)

    def _rebalance(self, node: Optional[IntervalHandle[T]]):
        """Restore heights, augmentation and AVL balance from node up to the root."""
        while node:
            self._update(node)
            balance = self._height(node.left) - self._height(node.right)
            if balance > 1:
                if self._height(node.left.left) < self._height(node.left.right):
                    self._rotate_left(node.left)
                self._rotate_right(node)
                node = node.parent
            elif balance < -1:
                if self._height(node.right.right) < self._height(node.right.left):
                    self._rotate_right(node.right)
                self._rotate_left(node)
                node = node.parent
            node = node.parent

    # --- Public API ---

    def insert(self, start: T, end: T, data: Any) -> IntervalHandle[T]:
        new_node = IntervalHandle(start, end, data)
        self._size += 1
        if not self.root:
            self.root = new_node
            return new_node

        parent = None
        curr = self.root
        while curr:
            parent = curr
            curr = curr.left if start < curr.start else curr.right

        new_node.parent = parent
        if start < parent.start:
            parent.left = new_node
        else:
            parent.right = new_node

        self._rebalance(parent)
        return new_node

    def delete(self, handle: IntervalHandle[T]):
        """
        Remove the interval behind handle.

        Nodes are relinked rather than having their payload swapped, so
        handles held for other intervals stay valid.
        """
        if handle.left is None or handle.right is None:
            child = handle.left or handle.right
            rebalance_from = handle.parent
            self._replace_child(handle.parent, handle, child)
        else:
            successor = handle.right
            while successor.left:
                successor = successor.left
            if successor.parent is handle:
                rebalance_from = successor
            else:
                rebalance_from = successor.parent
                self._replace_child(successor.parent, successor, successor.right)
                successor.right = handle.right
                successor.right.parent = successor
            successor.left = handle.left
            successor.left.parent = successor
            self._replace_child(handle.parent, handle, successor)
        handle.left = handle.right = handle.parent = None
        self._size -= 1
        self._rebalance(rebalance_from)

    # --- Search Methods ---

    def find_intersecting(self, start: T, end: T, callback: Callable[[IntervalHandle[T]], None]):
        """Finds intervals that have any overlap with [start, end]."""
        def _search(node):
            if not node or start > node.max_end:
                return
            _search(node.left)
            if node.start <= end:
                if node.end >= start:
                    callback(node)
                _search(node.right)
        _search(self.root)

    def find_overlapping(self, point: T, callback: Callable[[IntervalHandle[T]], None]):
        """Finds intervals that cover a specific point."""
        self.find_intersecting(point, point, callback)

    # --- Debug Tool ---

    def verify_integrity(self):
        """Raises RuntimeError if AVL height, max_end or parent links are violated."""
        def _walk(node, parent):
            if not node:
                return 0, None
            if node.parent is not parent:
                raise RuntimeError(f"Parent link violation at {node.start}")
            left_h, left_max = _walk(node.left, node)
            right_h, right_max = _walk(node.right, node)

            if abs(left_h - right_h) > 1:
                raise RuntimeError(f"AVL violation at {node.start}")
            if node.left and node.left.start > node.start:
                raise RuntimeError(f"Ordering violation at {node.start}")
            if node.right and node.right.start < node.start:
                raise RuntimeError(f"Ordering violation at {node.start}")

            expected_max = node.end
            for candidate in (left_max, right_max):
                if candidate is not None and candidate > expected_max:
                    expected_max = candidate
            if node.max_end != expected_max:
                raise RuntimeError(f"MaxEnd violation at {node.start}")
            return 1 + max(left_h, right_h), expected_max

        _walk(self.root, None)
