"""
Query-side interfaces for inspecting build graph targets.

The evaluator only ever talks to a TargetAccessor; the accessor only ever
talks to a QueryEnvironment. Neither side needs the other's concrete types.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, FrozenSet, List, Optional, TYPE_CHECKING

from buildquery.graph.schema import Label, TargetNode

if TYPE_CHECKING:
    from buildquery.query.visibility import QueryVisibility


class QueryException(Exception):
    """Query-level failure surfaced to the evaluator."""


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal problem attributed to the query expression that triggered it."""
    expression: str
    message: str


class QueryEnvironment(ABC):
    """Resolves labels and receives non-fatal diagnostics for an evaluation."""

    @abstractmethod
    def get_target(self, label: Label) -> TargetNode:
        """
        Resolve a label to a target.

        Raises:
            TargetNotFoundError: If the label does not resolve
        """
        pass

    @abstractmethod
    def report_build_file_error(self, caller: Any, message: str):
        """
        Report a non-fatal error against the query expression ``caller``.

        Args:
            caller: Originating query (sub-)expression; rendered with ``str()``
            message: Human-readable description
        """
        pass


class TargetAccessor(ABC):
    """
    Contract through which a query evaluator inspects targets.

    Attribute reads other than the string ones return empty results for
    targets that are not rules.
    """

    @abstractmethod
    def get_target_kind(self, target: TargetNode) -> str:
        pass

    @abstractmethod
    def get_label(self, target: TargetNode) -> str:
        pass

    @abstractmethod
    def get_package(self, target: TargetNode) -> str:
        pass

    @abstractmethod
    def is_rule(self, target: TargetNode) -> bool:
        pass

    @abstractmethod
    def is_test_rule(self, target: TargetNode) -> bool:
        pass

    @abstractmethod
    def is_test_suite(self, target: TargetNode) -> bool:
        pass

    @abstractmethod
    def get_string_attr(self, target: TargetNode, attr_name: str) -> str:
        pass

    @abstractmethod
    def get_string_list_attr(self, target: TargetNode, attr_name: str) -> List[str]:
        pass

    @abstractmethod
    def get_label_list_attr(
        self,
        caller: Any,
        target: TargetNode,
        attr_name: str,
        error_msg_prefix: str
    ) -> List[TargetNode]:
        pass

    @abstractmethod
    def get_attr_as_string(self, target: TargetNode, attr_name: str) -> List[Optional[str]]:
        pass

    @abstractmethod
    def get_visibility(self, target: TargetNode) -> FrozenSet['QueryVisibility']:
        pass
