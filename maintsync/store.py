"""
Document stores holding one vehicle document per user key.

The engine only relies on four operations: read a snapshot, subscribe to
changes, merge-write a partial document, and replace a single field.
Two implementations are provided: an in-memory store and a store that
keeps each document as a YAML file in a directory.

Change notifications go through a queue drained by a single dispatcher,
so a write made from inside a subscriber callback is delivered only
after that callback returns. Stores may be shared between threads: one
lock serializes every operation, so a thread arriving while another is
dispatching waits for the queue to drain, then delivers its own
notifications.
"""

import copy
import logging
import threading
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Union

import yaml

from .errors import SubscriptionError, WriteFailure

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
ChangeCallback = Callable[[Optional[Document]], None]
ErrorCallback = Callable[[Exception], None]

# Errors a backing store can raise while reading or writing
STORE_ERRORS = (OSError, yaml.YAMLError)

YAML_EXTENSIONS = (".yaml", ".yml")


class _Subscription:
    def __init__(self, key: str, on_change: ChangeCallback, on_error: ErrorCallback):
        self.key = key
        self.on_change = on_change
        self.on_error = on_error
        self.active = True


class DocumentStore:
    """Base class: notification plumbing on top of _read/_write."""

    def __init__(self):
        self._subscriptions: Dict[str, List[_Subscription]] = {}
        self._queue: Deque[Tuple[str, Optional[_Subscription]]] = deque()
        self._dispatching = False
        self._lock = threading.RLock()

    # -- backing storage ---------------------------------------------------

    def _read(self, key: str) -> Optional[Document]:
        raise NotImplementedError

    def _write(self, key: str, doc: Document) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    # -- public operations -------------------------------------------------

    def get(self, key: str) -> Optional[Document]:
        """Read the current document, or None if it does not exist."""
        try:
            with self._lock:
                return self._read(key)
        except STORE_ERRORS as e:
            raise SubscriptionError(f"Could not read '{key}': {e}") from e

    def subscribe(
        self, key: str, on_change: ChangeCallback, on_error: ErrorCallback
    ) -> Callable[[], None]:
        """
        Watch a document. The current state is delivered right away, then
        once per write. Returns a function that cancels the subscription.
        """
        sub = _Subscription(key, on_change, on_error)
        with self._lock:
            self._subscriptions.setdefault(key, []).append(sub)
            self._enqueue(key, sub)

        def unsubscribe() -> None:
            with self._lock:
                sub.active = False
                subs = self._subscriptions.get(key, [])
                if sub in subs:
                    subs.remove(sub)

        return unsubscribe

    def merge_write(self, key: str, partial: Document) -> None:
        """Merge top-level fields into the document, creating it if needed."""
        with self._lock:
            try:
                doc = self._read(key) or {}
                doc.update(copy.deepcopy(partial))
                self._write(key, doc)
            except STORE_ERRORS as e:
                raise WriteFailure(f"Could not write '{key}': {e}") from e
            logger.debug("merge-write %s: %s", key, sorted(partial))
            self._enqueue(key)

    def update_field(self, key: str, field: str, value: Any) -> None:
        """Replace one top-level field of an existing document."""
        with self._lock:
            try:
                doc = self._read(key)
                if doc is None:
                    raise WriteFailure(f"No document for '{key}'")
                doc[field] = copy.deepcopy(value)
                self._write(key, doc)
            except STORE_ERRORS as e:
                raise WriteFailure(f"Could not update '{key}.{field}': {e}") from e
            logger.debug("update %s.%s", key, field)
            self._enqueue(key)

    # -- notification dispatch ---------------------------------------------

    def _enqueue(self, key: str, only: Optional[_Subscription] = None) -> None:
        # Called with the lock held; _dispatching is only ever seen True by
        # the thread that is draining the queue
        self._queue.append((key, only))
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queue:
                self._deliver(*self._queue.popleft())
        finally:
            self._dispatching = False

    def _deliver(self, key: str, only: Optional[_Subscription]) -> None:
        targets = [only] if only else list(self._subscriptions.get(key, []))
        targets = [s for s in targets if s.active]
        if not targets:
            return
        try:
            doc = self._read(key)
        except STORE_ERRORS as e:
            error = SubscriptionError(f"Could not read '{key}': {e}")
            for sub in targets:
                sub.on_error(error)
            return
        for sub in targets:
            if sub.active:
                sub.on_change(copy.deepcopy(doc))


class MemoryDocumentStore(DocumentStore):
    """Documents kept in a dict; mostly for tests and embedding."""

    def __init__(self, documents: Optional[Dict[str, Document]] = None):
        super().__init__()
        self._documents: Dict[str, Document] = copy.deepcopy(documents or {})

    def _read(self, key: str) -> Optional[Document]:
        doc = self._documents.get(key)
        return copy.deepcopy(doc) if doc is not None else None

    def _write(self, key: str, doc: Document) -> None:
        self._documents[key] = copy.deepcopy(doc)

    def keys(self) -> List[str]:
        return sorted(self._documents)


class YamlDocumentStore(DocumentStore):
    """
    One YAML file per key: <directory>/<key>.yaml or <directory>/<key>.yml.

    An existing file is used, preferring ``extension`` when both exist; new
    documents get ``extension``.
    """

    def __init__(self, directory: Union[str, Path], extension: str = ".yaml"):
        super().__init__()
        if extension not in YAML_EXTENSIONS:
            raise ValueError(f"Unsupported extension: {extension}")
        self.directory = Path(directory)
        self.extension = extension

    def path_for(self, key: str) -> Path:
        for ext in (self.extension,) + YAML_EXTENSIONS:
            path = self.directory / f"{key}{ext}"
            if path.exists():
                return path
        return self.directory / f"{key}{self.extension}"

    def _read(self, key: str) -> Optional[Document]:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise yaml.YAMLError(f"{path} does not contain a mapping")
        return data

    def _write(self, key: str, doc: Document) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.path_for(key), "w") as fp:
            yaml.dump(
                doc,
                fp,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=120,
            )

    def keys(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(
            {p.stem for ext in YAML_EXTENSIONS for p in self.directory.glob(f"*{ext}")}
        )
