import logging
import weakref
from collections import OrderedDict

logger = logging.getLogger(__name__)


class TraversalActiveError(RuntimeError):
    """
    Raised when a WrappingSet is mutated, or traversed a second time, while a traversal session still holds it.
    """


class TraversalSession(object):

    def __init__(self, owner):
        """
        One pass over a WrappingSet, starting wherever the previous pass stopped.

        The session borrows its set exclusively for as long as it is alive. The borrow ends when the session is
        closed, when its ``with`` block exits, or when the session object is dropped. Running to exhaustion does
        not end it: advancing the session again starts a fresh pass.

        :param owner: The WrappingSet to traverse.
        """
        if owner._active_session() is not None:
            raise TraversalActiveError("Another traversal session is still active on this set")
        self._owner = owner
        self._produced = 0
        self._closed = False
        # The set only keeps a weak reference, so a dropped session frees it
        owner._session = weakref.ref(self)
        logger.debug("Traversal session started at cursor %d", owner._cursor)

    def __iter__(self):
        return self

    def __next__(self):
        """
        Produce the element under the set's cursor and advance the cursor.

        :raises StopIteration: once every element currently held has been produced in this pass,
            or if the session was closed. A session that is not closed starts a fresh pass on the next call.
        """
        if self._closed:
            raise StopIteration
        owner = self._owner
        size = len(owner._ordered)
        if size == 0:
            owner._cursor = 0
            self._produced = 0
            raise StopIteration
        # Wrap, or repair a cursor left behind by a removal
        if owner._cursor >= size:
            owner._cursor = 0
        self._produced += 1
        if self._produced > size:
            logger.debug("Traversal pass complete after %d element(s), cursor at %d", size, owner._cursor)
            if owner.autoreset:
                owner._cursor = 0
            self._produced = 0
            raise StopIteration
        owner._cursor += 1
        return owner._ordered[owner._cursor - 1]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def produced(self):
        return self._produced

    @property
    def closed(self):
        return self._closed

    def close(self):
        """
        Release the borrow on the set and end the session. The cursor keeps whatever progress this session made.
        """
        if self._closed:
            return
        self._closed = True
        if self._owner._active_session() is self:
            self._owner._session = None
            logger.debug("Traversal session released at cursor %d", self._owner._cursor)


class WrappingSet(object):

    def __init__(self, iterable=(), autoreset=False):
        """
        A set that remembers where its last traversal stopped.

        Every traversal starts at the remembered position, wraps around at the end and yields each element
        held at most once. Elements are kept in insertion order until a removal rebuilds the snapshot.

        :param iterable: Elements to insert initially. Duplicates are ignored.
        :param autoreset: If True, a traversal that runs to exhaustion rewinds the cursor to the first element,
            so every completed pass restarts from the top instead of resuming where the last one ended.
            Passes abandoned early still resume.
        """
        self._members = OrderedDict()
        self._ordered = []
        self._cursor = 0
        self._session = None
        self.autoreset = autoreset
        for item in iterable:
            self.insert(item)

    def __iter__(self):
        return self.traverse()

    def __len__(self):
        return len(self._ordered)

    def __contains__(self, item):
        return item in self._members

    def __getitem__(self, index):
        return self._ordered[index]

    def __str__(self):
        return f"WrappingSet: {self._ordered.__str__()}, Idx {self._cursor}"

    def __repr__(self):
        return f"WrappingSet({self._ordered!r}, autoreset={self.autoreset!r})"

    @property
    def position(self):
        """Index of the element the next traversal starts with (before wrapping)."""
        return self._cursor

    def traverse(self):
        """
        Start a new pass over the set.

        :returns a TraversalSession that holds the set exclusively until it is closed or dropped.
        :raises TraversalActiveError: if another session is still active.
        """
        self._check_no_session("start a traversal")
        return TraversalSession(self)

    def insert(self, item):
        """
        Add an element. It is appended to the end of the traversal order, the cursor does not move.

        :param item: A hashable element.
        :returns True if the element was added, False if it was already present.
        """
        self._check_no_session("insert")
        if item in self._members:
            return False
        self._members[item] = None
        self._ordered.append(item)
        return True

    def remove(self, item):
        """
        Remove an element and rebuild the traversal order from the remaining ones.

        The cursor keeps its numeric value. If it now points past the end, the next traversal starts over.

        :param item: The element to remove.
        :returns True if the element was present, False otherwise.
        """
        self._check_no_session("remove")
        if item not in self._members:
            return False
        del self._members[item]
        self._ordered = list(self._members.keys())
        if self._cursor >= len(self._ordered) and self._cursor > 0:
            logger.debug("Cursor %d is past the end of %d element(s), next traversal wraps to 0",
                         self._cursor, len(self._ordered))
        return True

    def append(self, item):
        self.insert(item)

    def discard(self, item):
        self.remove(item)

    def update(self, iterable):
        """
        Insert every element of an iterable.

        :param iterable: Elements to add. Elements already present are skipped.
        :returns True, if any elements were added, False otherwise.
        """
        self._check_no_session("update")
        added = False
        for item in iterable:
            added = self.insert(item) or added
        return added

    def extend(self, iterable):
        self.update(iterable)

    def reset(self, reset_to_index=0):
        """
        Move the cursor so the next traversal starts at the given position.

        :param reset_to_index: Position in the traversal order. Taken modulo the number of elements.
        """
        self._check_no_session("reset")
        self._cursor = reset_to_index % len(self._ordered) if self._ordered else 0
        logger.debug("Cursor reset to %d", self._cursor)

    def _active_session(self):
        if self._session is None:
            return None
        session = self._session()
        if session is None:
            self._session = None
        return session

    def _check_no_session(self, action):
        if self._active_session() is not None:
            raise TraversalActiveError(f"Cannot {action} while a traversal session is active")
