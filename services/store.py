"""Document collections with live snapshot subscriptions.

Documents of every collection are kept in the ``documents`` table through
Flask-SQLAlchemy. A collection supports ``create``, ``update``, ``delete``
and ``subscribe``; a subscription receives the full ordered snapshot of the
collection right away and again after every committed write to it.

Snapshot items are plain dicts: the stored fields plus ``id``.
"""

import logging
import queue
import threading
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError

from errors import RemoteReadError, RemoteWriteError
from models import db
from models.document import Document

logger = logging.getLogger(__name__)

ASCENDING = 'ASCENDING'
DESCENDING = 'DESCENDING'


class _ServerTimestamp:
    def __repr__(self):
        return 'SERVER_TIMESTAMP'


# Field value replaced by the store's own clock when a write is applied
SERVER_TIMESTAMP = _ServerTimestamp()


class Subscription:
    """Handle of a standing listener; release it with ``unsubscribe()``.

    Usable as a context manager so the release happens on every exit path.
    """

    def __init__(self, store, listener):
        self._store = store
        self._listener = listener

    @property
    def active(self):
        return self._store._is_registered(self._listener)

    def unsubscribe(self):
        self._store._unsubscribe(self._listener)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unsubscribe()
        return False


class _Listener:
    def __init__(self, query, on_snapshot, on_error=None):
        self.query = query
        self.on_snapshot = on_snapshot
        self.on_error = on_error

    def deliver(self, snapshot):
        try:
            self.on_snapshot([dict(item) for item in snapshot])
        except Exception:
            logger.exception('Snapshot listener on %s failed', self.query.collection)

    def fail(self, error):
        if self.on_error is None:
            logger.error('Subscription to %s failed: %s', self.query.collection, error)
            return
        try:
            self.on_error(error)
        except Exception:
            logger.exception('Error listener on %s failed', self.query.collection)


class CollectionQuery:
    """Read side of a collection, optionally ordered by one payload field."""

    def __init__(self, store, collection, order_field=None, direction=ASCENDING):
        self._store = store
        self.collection = collection
        self.order_field = order_field
        self.direction = direction

    @property
    def key(self):
        return (self.collection, self.order_field, self.direction)

    def order_by(self, field, direction=ASCENDING):
        if direction not in (ASCENDING, DESCENDING):
            raise ValueError(f'Unknown direction: {direction}')
        return CollectionQuery(self._store, self.collection, field, direction)

    def get(self):
        """Fetch the current snapshot.

        Raises:
            RemoteReadError: If the underlying query fails.
        """
        try:
            query = Document.query.filter_by(collection=self.collection)
            if self.order_field:
                column = Document.data[self.order_field].as_string()
                if self.direction == DESCENDING:
                    query = query.order_by(column.desc(), Document.id.desc())
                else:
                    query = query.order_by(column.asc(), Document.id.asc())
            else:
                query = query.order_by(Document.created_at.asc(), Document.id.asc())
            return [document.to_snapshot_item() for document in query.all()]
        except SQLAlchemyError as e:
            db.session.rollback()
            raise RemoteReadError(f'Could not read collection {self.collection}: {e}') from e

    def subscribe(self, on_snapshot, on_error=None):
        """Register a listener; the first snapshot is delivered before returning."""
        return self._store._subscribe(self, on_snapshot, on_error)


class Collection(CollectionQuery):
    """A named collection of documents."""

    def create(self, fields):
        """Store a new document and return its assigned id."""
        document = Document(collection=self.collection, data=self._store._resolve(fields))

        def apply():
            db.session.add(document)

        self._store._write(self.collection, apply)
        return document.id

    def update(self, doc_id, fields):
        """Merge ``fields`` into an existing document.

        Raises:
            RemoteWriteError: If the document does not exist or the write fails.
        """
        def apply():
            document = db.session.get(Document, doc_id)
            if document is None or document.collection != self.collection:
                raise RemoteWriteError(f'No document {self.collection}/{doc_id}')
            merged = dict(document.data or {})
            merged.update(self._store._resolve(fields))
            document.data = merged

        self._store._write(self.collection, apply)

    def delete(self, doc_id):
        """Delete a document; deleting a missing document is a no-op."""
        def apply():
            document = db.session.get(Document, doc_id)
            if document is not None and document.collection == self.collection:
                db.session.delete(document)

        self._store._write(self.collection, apply)


class DocumentStore:
    """Flask extension giving access to document collections."""

    def __init__(self, app=None):
        self._listeners = []
        self._lock = threading.RLock()
        self._last_stamp = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.extensions['document_store'] = self

    def collection(self, name):
        return Collection(self, name)

    def listener_count(self, collection=None):
        with self._lock:
            return sum(1 for listener in self._listeners
                       if collection is None or listener.query.collection == collection)

    def _is_registered(self, listener):
        with self._lock:
            return listener in self._listeners

    def _subscribe(self, query, on_snapshot, on_error):
        listener = _Listener(query, on_snapshot, on_error)
        with self._lock:
            self._listeners.append(listener)
        subscription = Subscription(self, listener)
        try:
            snapshot = query.get()
        except RemoteReadError as e:
            listener.fail(e)
        else:
            listener.deliver(snapshot)
        return subscription

    def _unsubscribe(self, listener):
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _server_timestamp(self):
        # strictly increasing even when two writes land on the same clock tick
        with self._lock:
            now = datetime.now(timezone.utc)
            if self._last_stamp is not None and now <= self._last_stamp:
                now = self._last_stamp + timedelta(microseconds=1)
            self._last_stamp = now
            return now.isoformat(timespec='microseconds')

    def _resolve(self, fields):
        resolved = {}
        stamp = None
        for name, value in fields.items():
            if value is SERVER_TIMESTAMP:
                if stamp is None:
                    stamp = self._server_timestamp()
                value = stamp
            resolved[name] = value
        return resolved

    def _write(self, collection, apply):
        try:
            apply()
            db.session.commit()
        except RemoteWriteError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception('Write to %s failed', collection)
            raise RemoteWriteError(f'Could not write to collection {collection}: {e}') from e
        self._notify(collection)

    def _notify(self, collection):
        with self._lock:
            listeners = [listener for listener in self._listeners
                         if listener.query.collection == collection]
        snapshots = {}
        for listener in listeners:
            key = listener.query.key
            if key not in snapshots:
                try:
                    snapshots[key] = listener.query.get()
                except RemoteReadError as e:
                    snapshots[key] = e
            result = snapshots[key]
            if isinstance(result, RemoteReadError):
                listener.fail(result)
            else:
                listener.deliver(result)


def iter_snapshots(query, keepalive=None):
    """Yield every snapshot of ``query`` until the generator is closed.

    Yields ``None`` whenever ``keepalive`` seconds pass without a snapshot.
    The subscription is released when the generator finishes or is closed.

    Raises:
        RemoteReadError: If the subscription reports a read failure.
    """
    events = queue.Queue()
    subscription = query.subscribe(events.put, events.put)
    try:
        while True:
            try:
                event = events.get(timeout=keepalive)
            except queue.Empty:
                yield None
                continue
            if isinstance(event, RemoteReadError):
                raise event
            yield event
    finally:
        subscription.unsubscribe()
