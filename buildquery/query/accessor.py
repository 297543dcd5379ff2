"""
TargetAccessor implementation over the build graph.

Reads typed attributes, follows label attributes to other targets, and
resolves visibility, including visibility granted through package groups.
"""
import logging
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from buildquery.config import AccessorConfig
from buildquery.graph.attributes import AggregatingAttributeMapper, NonconfigurableAttributeMapper
from buildquery.graph.schema import (
    AttrType, ConstantVisibility, Label, PackageGroupNode, PackageGroupsVisibility,
    RuleNode, TargetNode, TargetType, TriState,
)
from buildquery.graph.store import TargetNotFoundError
from buildquery.query.base import QueryEnvironment, QueryException, TargetAccessor
from buildquery.query.visibility import (
    EVERYTHING, PackageSpecVisibility, QueryVisibility, same_package,
)

logger = logging.getLogger(__name__)


# Boolean and tri-state attributes are stored as bool/TriState but were
# historically queried as integers. 'attr' queries keep matching on the
# integer form, so these two types render through this table only.
LEGACY_ATTR_ENCODINGS: Dict[AttrType, Dict[Any, str]] = {
    AttrType.BOOLEAN: {True: "1", False: "0"},
    AttrType.TRISTATE: {TriState.AUTO: "-1", TriState.NO: "0", TriState.YES: "1"},
}


def _render(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, list):
        return "[" + ", ".join(str(v) for v in value) + "]"
    return str(value)


class GraphTargetAccessor(TargetAccessor):
    """
    TargetAccessor that resolves labels and reports problems through a
    QueryEnvironment.

    Holds no mutable state; calls on different targets may run concurrently.
    """

    def __init__(self, query_environment: QueryEnvironment, config: Optional[AccessorConfig] = None):
        self.query_environment = query_environment
        self.config = config or AccessorConfig()

    def get_target_kind(self, target: TargetNode) -> str:
        return target.kind

    def get_label(self, target: TargetNode) -> str:
        return str(target.label)

    def get_package(self, target: TargetNode) -> str:
        return target.package

    def is_rule(self, target: TargetNode) -> bool:
        return target.target_type == TargetType.RULE

    def is_test_rule(self, target: TargetNode) -> bool:
        return self.is_rule(target) and target.rule_class.endswith("_test")

    def is_test_suite(self, target: TargetNode) -> bool:
        return self.is_rule(target) and target.rule_class == "test_suite"

    def _check_rule(self, target: TargetNode) -> RuleNode:
        if not self.is_rule(target):
            raise ValueError(f"Expected a rule, got {target.kind} {target.label}")
        return target

    def get_string_attr(self, target: TargetNode, attr_name: str) -> str:
        rule = self._check_rule(target)
        return NonconfigurableAttributeMapper.of(rule).get(attr_name, AttrType.STRING)

    def get_string_list_attr(self, target: TargetNode, attr_name: str) -> List[str]:
        rule = self._check_rule(target)
        value = NonconfigurableAttributeMapper.of(rule).get(attr_name, AttrType.STRING_LIST)
        # A present-but-null list reads as empty
        return list(value) if value is not None else []

    def get_label_list_attr(
        self,
        caller: Any,
        target: TargetNode,
        attr_name: str,
        error_msg_prefix: str
    ) -> List[TargetNode]:
        """
        Targets referenced by a label attribute across every configuration branch.

        Select condition labels are not followed. Labels that fail to resolve
        are reported through the environment against ``caller`` and skipped.

        Returns:
            Resolved targets, empty if the target is not a rule or lacks the attribute
        """
        if not self.is_rule(target):
            return []

        attr_map = AggregatingAttributeMapper.of(target)
        if attr_map.get_attribute_type(attr_name) is None:
            return []

        result = []
        for label in attr_map.get_reachable_labels(attr_name, include_select_keys=False):
            try:
                result.append(self.query_environment.get_target(label))
            except TargetNotFoundError as e:
                self.query_environment.report_build_file_error(caller, error_msg_prefix + str(e))
        return result

    def get_attr_as_string(self, target: TargetNode, attr_name: str) -> List[Optional[str]]:
        """
        Every value the attribute can take, rendered as a string.

        Booleans render as "1"/"0" and tri-states as "1"/"0"/"-1". A null value
        stays None.
        """
        if not self.is_rule(target):
            return []

        attribute = target.get_attribute_definition(attr_name)
        if attribute is None:
            return []

        encoding = LEGACY_ATTR_ENCODINGS.get(attribute.type)
        values: List[Optional[str]] = []
        for value in AggregatingAttributeMapper.of(target).visit_attribute(attribute.name):
            if value is not None and encoding is not None:
                values.append(encoding[value])
            else:
                values.append(_render(value))
        return values

    def get_visibility(self, target: TargetNode) -> FrozenSet[QueryVisibility]:
        """
        Resolved visibility of a target.

        Always contains the target's own package.

        Raises:
            QueryException: If a referenced package group cannot be resolved
        """
        result: Set[QueryVisibility] = {same_package(target, self)}
        self._convert_visibility(result, target)
        return frozenset(result)

    def _convert_visibility(self, package_specifications: Set[QueryVisibility], target: TargetNode):
        rule_visibility = target.visibility
        if isinstance(rule_visibility, ConstantVisibility):
            if rule_visibility.public:
                package_specifications.add(EVERYTHING)
            return

        if isinstance(rule_visibility, PackageGroupsVisibility):
            visited: Set[Label] = set()
            for group_label in rule_visibility.package_groups:
                self._convert_group_visibility(group_label, package_specifications, visited, ())
            for spec in rule_visibility.direct_packages:
                package_specifications.add(PackageSpecVisibility(spec))
            return

        raise RuntimeError(f"unknown visibility: {type(rule_visibility).__name__}")

    def _resolve_package_group(self, label: Label) -> PackageGroupNode:
        try:
            group = self.query_environment.get_target(label)
        except TargetNotFoundError as e:
            raise QueryException(str(e)) from e

        if group.target_type != TargetType.PACKAGE_GROUP:
            raise QueryException(f"'{label}' is not a package group, it is a {group.kind}")
        return group

    def _convert_group_visibility(
        self,
        group_label: Label,
        package_specifications: Set[QueryVisibility],
        visited: Set[Label],
        include_path: Tuple[Label, ...]
    ):
        if group_label in include_path:
            cycle = " -> ".join(str(label) for label in include_path + (group_label,))
            if self.config.package_group_cycles == "error":
                raise QueryException(f"cycle in package group includes: {cycle}")
            logger.warning(f"Ignoring cycle in package group includes: {cycle}")
            return

        # Groups reached twice through different includes contribute once
        if group_label in visited:
            return
        visited.add(group_label)

        group = self._resolve_package_group(group_label)
        for include in group.includes:
            self._convert_group_visibility(
                include, package_specifications, visited, include_path + (group_label,)
            )
        for spec in group.packages:
            package_specifications.add(PackageSpecVisibility(spec))
