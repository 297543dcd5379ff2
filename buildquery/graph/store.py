"""
In-memory build graph store.

Holds targets keyed by label and loads serialized graphs from YAML documents.
"""
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List, Set

import yaml

from buildquery.graph.schema import (
    Attribute, AttrType, FileNode, Label, PackageGroupNode, PackageSpecification,
    PUBLIC, RuleNode, Select, TargetNode, TargetType, parse_visibility,
)

logger = logging.getLogger(__name__)


class TargetNotFoundError(Exception):
    """Raised when a label does not resolve to a target."""

    def __init__(self, label: Label, reason: str):
        self.label = label
        self.reason = reason
        super().__init__(f"no such target '{label}': {reason}")


class GraphStore:
    """
    Build graph holding targets and the packages that declare them.

    Read operations never mutate the store, so concurrent readers are safe
    once loading has finished.
    """

    def __init__(self):
        self.nodes: Dict[Label, TargetNode] = {}
        self.packages: Set[str] = set()

    def add_package(self, package: str):
        """Register a package, even if it declares no targets."""
        self.packages.add(package)

    def add_target(self, target: TargetNode) -> TargetNode:
        """
        Insert a target, registering its package.

        Raises:
            ValueError: If a target with the same label already exists
        """
        if target.label in self.nodes:
            raise ValueError(f"Duplicate target: {target.label}")
        self.packages.add(target.package)
        self.nodes[target.label] = target
        return target

    def has_target(self, label: Label) -> bool:
        return label in self.nodes

    def get_target(self, label: Label) -> TargetNode:
        """
        Resolve a label to its target.

        Raises:
            TargetNotFoundError: If the package or the target does not exist
        """
        node = self.nodes.get(label)
        if node is not None:
            return node
        if label.package not in self.packages:
            raise TargetNotFoundError(label, f"no such package '{label.package}'")
        raise TargetNotFoundError(
            label, f"target '{label.name}' not declared in package '{label.package}'"
        )

    def list_targets(self, package: Optional[str] = None) -> List[TargetNode]:
        """List targets, optionally restricted to one package, sorted by label."""
        nodes = [n for n in self.nodes.values() if package is None or n.package == package]
        return sorted(nodes, key=lambda n: str(n.label))

    def clear(self):
        """Remove all targets and packages."""
        self.nodes.clear()
        self.packages.clear()

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> 'GraphStore':
        """
        Load a graph from a YAML document.

        Raises:
            FileNotFoundError: If the YAML file doesn't exist
            ValueError: If the document is malformed
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Graph file not found: {yaml_path}")

        with open(yaml_path, 'r') as f:
            data = yaml.safe_load(f)

        store = cls()
        store.load_graph(data or {})
        logger.debug(f"Loaded {len(store.nodes)} targets in {len(store.packages)} packages from {yaml_path}")
        return store

    def load_graph(self, data: Dict[str, Any]):
        """
        Add every package described by a graph document.

        The document maps ``packages`` to ``{package_name: package_body}``;
        each body may list ``rules``, ``package_groups`` and ``files`` and set
        a ``default_visibility``.
        """
        packages = data.get('packages')
        if not isinstance(packages, dict):
            raise ValueError("Graph document requires a 'packages' mapping")

        for package, body in packages.items():
            self._load_package(str(package), body or {})

    def _load_package(self, package: str, body: Dict[str, Any]):
        self.add_package(package)
        default_visibility = body.get('default_visibility')

        for rule in body.get('rules') or []:
            self.add_target(_build_rule(package, rule, default_visibility))

        for group in body.get('package_groups') or []:
            self.add_target(PackageGroupNode(
                label=Label(package=package, name=_require(group, 'name', package)),
                visibility=PUBLIC,
                includes=[Label.parse(raw, package) for raw in group.get('includes') or []],
                packages=[PackageSpecification.parse(raw) for raw in group.get('packages') or []],
            ))

        for entry in body.get('files') or []:
            generating_rule = entry.get('generating_rule')
            self.add_target(FileNode(
                target_type=TargetType.GENERATED_FILE if generating_rule else TargetType.SOURCE_FILE,
                label=Label(package=package, name=_require(entry, 'name', package)),
                visibility=parse_visibility(entry.get('visibility', default_visibility), package),
                generating_rule=Label.parse(generating_rule, package) if generating_rule else None,
            ))


def _require(entry: Dict[str, Any], field: str, package: str) -> Any:
    if field not in entry:
        raise ValueError(f"Missing required field '{field}' in package '{package}': {entry}")
    return entry[field]


def _build_rule(package: str, entry: Dict[str, Any], default_visibility: Optional[List[str]]) -> RuleNode:
    name = _require(entry, 'name', package)
    attributes: Dict[str, Attribute] = {}
    values: Dict[str, Any] = {}

    for attr_name, spec in (entry.get('attributes') or {}).items():
        if not isinstance(spec, dict) or 'type' not in spec:
            raise ValueError(f"Attribute '{attr_name}' of //{package}:{name} needs a 'type'")

        attr_type = AttrType(spec['type'])
        configurable = bool(spec.get('configurable', 'select' in spec))
        attributes[attr_name] = Attribute(
            name=attr_name,
            type=attr_type,
            configurable=configurable,
            default=spec.get('default'),
        )

        if 'select' in spec:
            values[attr_name] = Select.of(spec['select'], package)
        elif 'value' in spec:
            values[attr_name] = spec['value']

    return RuleNode(
        label=Label(package=package, name=name),
        rule_class=_require(entry, 'rule_class', package),
        visibility=parse_visibility(entry.get('visibility', default_visibility), package),
        attributes=attributes,
        values=values,
    )
