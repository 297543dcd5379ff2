"""
Query environment backed by a GraphStore.
"""
import logging
import threading
from typing import Any, Callable, List, Optional

from buildquery.graph.schema import Label, TargetNode
from buildquery.graph.store import GraphStore
from buildquery.query.base import Diagnostic, QueryEnvironment

logger = logging.getLogger(__name__)

DiagnosticSink = Callable[[Diagnostic], None]


class GraphQueryEnvironment(QueryEnvironment):
    """
    Resolves labels through a GraphStore and collects diagnostics.

    Every reported diagnostic is logged, kept in ``diagnostics`` and passed to
    the optional caller-supplied sink.
    """

    def __init__(self, store: GraphStore, sink: Optional[DiagnosticSink] = None):
        self.store = store
        self.sink = sink
        self._diagnostics: List[Diagnostic] = []
        self._lock = threading.Lock()

    def get_target(self, label: Label) -> TargetNode:
        logger.debug(f"Resolving {label}")
        return self.store.get_target(label)

    def report_build_file_error(self, caller: Any, message: str):
        diagnostic = Diagnostic(expression=str(caller), message=message)
        logger.warning(f"{diagnostic.message} (in '{diagnostic.expression}')")

        with self._lock:
            self._diagnostics.append(diagnostic)

        if self.sink is not None:
            self.sink(diagnostic)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        """Snapshot of diagnostics reported so far."""
        with self._lock:
            return list(self._diagnostics)
