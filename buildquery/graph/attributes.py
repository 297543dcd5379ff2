"""
Attribute mappers over rule targets.

AggregatingAttributeMapper sees every configuration branch of an attribute;
NonconfigurableAttributeMapper only reads attributes whose value is fixed.
"""
from typing import Any, Dict, List, Optional

from buildquery.graph.schema import (
    AttrType, Label, RuleNode, Select, DEFAULT_CONDITION,
)


def _labels_in(attr_type: AttrType, value: Any) -> List[Label]:
    """Labels carried by a single (non-select) attribute value."""
    if value is None:
        return []
    if attr_type == AttrType.LABEL:
        return [value]
    if attr_type == AttrType.LABEL_LIST:
        return list(value)
    return []


class AggregatingAttributeMapper:
    """
    Reads attribute values across all configuration branches.

    Used where every value an attribute could take matters, independent of
    the build configuration (e.g. query traversal).
    """

    def __init__(self, rule: RuleNode):
        self.rule = rule

    @classmethod
    def of(cls, rule: RuleNode) -> 'AggregatingAttributeMapper':
        return cls(rule)

    def get_attribute_type(self, attr_name: str) -> Optional[AttrType]:
        """Declared type of the attribute, or None if the rule lacks it."""
        attribute = self.rule.get_attribute_definition(attr_name)
        return attribute.type if attribute is not None else None

    def visit_attribute(self, attr_name: str) -> List[Any]:
        """
        Every value the attribute can take, one per configuration branch.

        Duplicates are kept; a non-configured attribute yields its single value.
        """
        raw = self.rule.get_raw_value(attr_name)
        if isinstance(raw, Select):
            return [branch.value for branch in raw.branches]
        return [raw]

    def get_reachable_labels(self, attr_name: str, include_select_keys: bool) -> List[Label]:
        """
        All labels reachable from the attribute across every branch.

        Args:
            attr_name: Attribute name
            include_select_keys: Also include select() condition labels

        Returns:
            De-duplicated labels in first-seen order
        """
        attr_type = self.get_attribute_type(attr_name)
        if attr_type is None:
            return []

        reachable: Dict[Label, None] = {}
        raw = self.rule.get_raw_value(attr_name)
        if isinstance(raw, Select):
            for branch in raw.branches:
                if include_select_keys and branch.condition != DEFAULT_CONDITION:
                    reachable.setdefault(branch.condition)
                for label in _labels_in(attr_type, branch.value):
                    reachable.setdefault(label)
        else:
            for label in _labels_in(attr_type, raw):
                reachable.setdefault(label)

        return list(reachable)


class NonconfigurableAttributeMapper:
    """Reads attributes that cannot vary by configuration; rejects all others."""

    def __init__(self, rule: RuleNode):
        self.rule = rule

    @classmethod
    def of(cls, rule: RuleNode) -> 'NonconfigurableAttributeMapper':
        return cls(rule)

    def get(self, attr_name: str, attr_type: AttrType) -> Any:
        """
        Read a non-configurable attribute of the expected type.

        Raises:
            ValueError: If the attribute is absent, configurable, or of another type
        """
        attribute = self.rule.get_attribute_definition(attr_name)
        if attribute is None:
            raise ValueError(f"No such attribute '{attr_name}' in {self.rule.kind} {self.rule.label}")
        if attribute.configurable:
            raise ValueError(f"Attribute '{attr_name}' is potentially configurable - not allowed here")
        if attribute.type != attr_type:
            raise ValueError(
                f"Attribute '{attr_name}' is of type {attribute.type.value}, not {attr_type.value}"
            )
        return self.rule.get_raw_value(attr_name)
