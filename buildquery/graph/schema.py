"""
Build graph schema with strict typed primitives.

Defines labels, package specifications, attribute types, visibility forms and
the target node kinds stored in the build graph.
"""
from enum import Enum, IntEnum
from typing import Dict, Any, Optional, List, Union, Literal
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Label(BaseModel):
    """Unique, resolvable identifier of a target: ``@repo//package:name``."""
    model_config = ConfigDict(frozen=True)

    repo: str = ""
    package: str
    name: str

    @classmethod
    def parse(cls, raw: str, package: Optional[str] = None) -> 'Label':
        """
        Parse a label string.

        Args:
            raw: ``//pkg:name``, ``//pkg``, ``@repo//pkg:name``, or ``:name`` /
                ``name`` relative to ``package``
            package: Package used to resolve relative labels

        Returns:
            Parsed Label

        Raises:
            ValueError: If the label is malformed
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError(f"Invalid label: {raw!r}")

        repo = ""
        body = raw
        if body.startswith("@"):
            if "//" not in body:
                raise ValueError(f"Invalid label '{raw}': missing '//' after repository name")
            repo, body = body[1:].split("//", 1)
            body = "//" + body

        if body.startswith("//"):
            body = body[2:]
            if ":" in body:
                pkg, name = body.split(":", 1)
            else:
                pkg = body
                name = pkg.rsplit("/", 1)[-1]
        else:
            if package is None:
                raise ValueError(f"Relative label '{raw}' needs a package to resolve against")
            pkg = package
            name = body[1:] if body.startswith(":") else body

        if not name:
            raise ValueError(f"Invalid label '{raw}': empty target name")
        if pkg.endswith("/") or pkg.startswith("/") or "//" in pkg:
            raise ValueError(f"Invalid label '{raw}': malformed package name")

        return cls(repo=repo, package=pkg, name=name)

    def __str__(self) -> str:
        prefix = f"@{self.repo}" if self.repo else ""
        return f"{prefix}//{self.package}:{self.name}"


# Condition key that matches when no other select() branch does
DEFAULT_CONDITION = Label(package="conditions", name="default")


class PackageSpecification(BaseModel):
    """Pattern matching packages: ``//foo`` (exact), ``//foo/...`` (subtree), ``//...`` (all)."""
    model_config = ConfigDict(frozen=True)

    package: str
    recursive: bool = False

    @classmethod
    def parse(cls, raw: str) -> 'PackageSpecification':
        """Parse a package specification string."""
        if not isinstance(raw, str) or not raw.startswith("//"):
            raise ValueError(f"Invalid package specification: {raw!r}")

        body = raw[2:]
        if body == "...":
            return cls(package="", recursive=True)
        if body.endswith("/..."):
            return cls(package=body[:-len("/...")], recursive=True)
        if ":" in body:
            raise ValueError(f"Invalid package specification '{raw}': did you mean a label?")
        return cls(package=body)

    def contains_package(self, package_name: str) -> bool:
        """Check whether the named package matches this specification."""
        if not self.recursive:
            return package_name == self.package
        if not self.package:
            return True
        return package_name == self.package or package_name.startswith(self.package + "/")

    def __str__(self) -> str:
        if self.recursive:
            return f"//{self.package}/..." if self.package else "//..."
        return f"//{self.package}"


class AttrType(str, Enum):
    """Declared attribute types."""
    STRING = "string"
    STRING_LIST = "string_list"
    BOOLEAN = "boolean"
    TRISTATE = "tristate"
    INTEGER = "integer"
    LABEL = "label"
    LABEL_LIST = "label_list"

    @property
    def is_label_type(self) -> bool:
        return self in (AttrType.LABEL, AttrType.LABEL_LIST)

    @property
    def is_list_type(self) -> bool:
        return self in (AttrType.STRING_LIST, AttrType.LABEL_LIST)


class TriState(IntEnum):
    """Three-valued attribute: explicitly off, explicitly on, or left to the rule."""
    AUTO = -1
    NO = 0
    YES = 1

    @classmethod
    def coerce(cls, value: Any) -> 'TriState':
        """Accept a TriState, a bool, an int in -1..1, or a case-insensitive name."""
        if isinstance(value, TriState):
            return value
        if isinstance(value, bool):
            return cls.YES if value else cls.NO
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str) and value.upper() in cls.__members__:
            return cls[value.upper()]
        raise ValueError(f"Invalid tristate value: {value!r}")


# Natural defaults for attributes that are neither set nor given a default
TYPE_DEFAULTS: Dict[AttrType, Any] = {
    AttrType.STRING: "",
    AttrType.STRING_LIST: [],
    AttrType.BOOLEAN: False,
    AttrType.TRISTATE: TriState.AUTO,
    AttrType.INTEGER: 0,
    AttrType.LABEL: None,
    AttrType.LABEL_LIST: [],
}


def convert_value(attr_type: AttrType, value: Any, package: str) -> Any:
    """
    Convert a raw attribute value to the representation of its declared type.

    Args:
        attr_type: Declared attribute type
        value: Raw value (``None`` is kept as a present-but-null value)
        package: Package that relative labels resolve against

    Returns:
        Converted value

    Raises:
        ValueError: If the value does not fit the type
    """
    if value is None:
        return None

    if attr_type == AttrType.STRING:
        if not isinstance(value, str):
            raise ValueError(f"Expected string, got {type(value).__name__}")
        return value

    if attr_type == AttrType.STRING_LIST:
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"Expected list of strings, got {value!r}")
        return list(value)

    if attr_type == AttrType.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise ValueError(f"Expected boolean, got {value!r}")

    if attr_type == AttrType.TRISTATE:
        return TriState.coerce(value)

    if attr_type == AttrType.INTEGER:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Expected integer, got {value!r}")
        return value

    if attr_type == AttrType.LABEL:
        return value if isinstance(value, Label) else Label.parse(value, package)

    if attr_type == AttrType.LABEL_LIST:
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"Expected list of labels, got {value!r}")
        return [v if isinstance(v, Label) else Label.parse(v, package) for v in value]

    raise ValueError(f"Unknown attribute type: {attr_type}")


class Attribute(BaseModel):
    """Attribute definition: name, declared type, configurability and default."""
    name: str
    type: AttrType
    configurable: bool = False
    default: Any = None

    def get_default(self) -> Any:
        default = self.default if self.default is not None else TYPE_DEFAULTS[self.type]
        return list(default) if isinstance(default, list) else default


class SelectBranch(BaseModel):
    """One ``condition -> value`` branch of a select()."""
    condition: Label
    value: Any = None


class Select(BaseModel):
    """Configurable attribute value: one branch per configuration condition."""
    branches: List[SelectBranch] = Field(..., min_length=1)

    @classmethod
    def of(cls, branches: Dict[Union[str, Label], Any], package: str = "") -> 'Select':
        """Build a select from a ``{condition: value}`` mapping."""
        return cls(branches=[
            SelectBranch(
                condition=key if isinstance(key, Label) else Label.parse(key, package),
                value=value,
            )
            for key, value in branches.items()
        ])


class ConstantVisibility(BaseModel):
    """Fixed visibility: public or private."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["constant"] = "constant"
    public: bool


class PackageGroupsVisibility(BaseModel):
    """Visibility granted through package groups and directly listed packages."""
    kind: Literal["package_groups"] = "package_groups"
    package_groups: List[Label] = Field(default_factory=list)
    direct_packages: List[PackageSpecification] = Field(default_factory=list)


RuleVisibility = Union[ConstantVisibility, PackageGroupsVisibility]

PUBLIC = ConstantVisibility(public=True)
PRIVATE = ConstantVisibility(public=False)

PUBLIC_LABEL = Label(package="visibility", name="public")
PRIVATE_LABEL = Label(package="visibility", name="private")


def parse_visibility(labels: Optional[List[str]], package: str) -> RuleVisibility:
    """
    Convert a declared visibility label list into a visibility.

    ``//visibility:public`` and ``//visibility:private`` give the constant forms,
    ``//pkg:__pkg__`` and ``//pkg:__subpackages__`` become direct package
    specifications, and every other label names a package group.

    Raises:
        ValueError: If public/private is combined with other labels
    """
    if not labels:
        return PRIVATE

    parsed = [Label.parse(raw, package) for raw in labels]
    if PUBLIC_LABEL in parsed or PRIVATE_LABEL in parsed:
        if len(parsed) > 1:
            raise ValueError(
                f"//visibility:public and //visibility:private cannot be combined with other labels: {labels}"
            )
        return PUBLIC if parsed[0] == PUBLIC_LABEL else PRIVATE

    groups: List[Label] = []
    direct: List[PackageSpecification] = []
    for label in parsed:
        if label.name == "__pkg__":
            direct.append(PackageSpecification(package=label.package))
        elif label.name == "__subpackages__":
            direct.append(PackageSpecification(package=label.package, recursive=True))
        else:
            groups.append(label)

    return PackageGroupsVisibility(package_groups=groups, direct_packages=direct)


class TargetType(str, Enum):
    """Strict target node kinds in the build graph."""
    RULE = "rule"
    PACKAGE_GROUP = "package_group"
    SOURCE_FILE = "source_file"
    GENERATED_FILE = "generated_file"


# Kind strings shown to queries; rules refine theirs with the rule class
TARGET_KINDS: Dict[TargetType, str] = {
    TargetType.RULE: "rule",
    TargetType.PACKAGE_GROUP: "package group",
    TargetType.SOURCE_FILE: "source file",
    TargetType.GENERATED_FILE: "generated file",
}


class TargetNode(BaseModel):
    """Base properties for all targets."""
    target_type: TargetType
    label: Label
    visibility: RuleVisibility = Field(default=PRIVATE, discriminator="kind")

    @property
    def package(self) -> str:
        return self.label.package

    @property
    def kind(self) -> str:
        return TARGET_KINDS[self.target_type]


class RuleNode(TargetNode):
    """Rule target carrying typed attributes."""
    target_type: TargetType = TargetType.RULE
    rule_class: str
    attributes: Dict[str, Attribute] = Field(default_factory=dict)
    values: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _convert_values(self) -> 'RuleNode':
        self.attributes = {
            name: attribute.model_copy(update={
                'default': convert_value(attribute.type, attribute.default, self.package),
            })
            for name, attribute in self.attributes.items()
        }

        converted: Dict[str, Any] = {}
        for name, value in self.values.items():
            attribute = self.attributes.get(name)
            if attribute is None:
                raise ValueError(f"Value given for undeclared attribute '{name}' of {self.label}")
            if isinstance(value, Select):
                if not attribute.configurable:
                    raise ValueError(f"Attribute '{name}' of {self.label} is not configurable")
                converted[name] = Select(branches=[
                    SelectBranch(
                        condition=branch.condition,
                        value=convert_value(attribute.type, branch.value, self.package),
                    )
                    for branch in value.branches
                ])
            else:
                converted[name] = convert_value(attribute.type, value, self.package)
        self.values = converted
        return self

    @property
    def kind(self) -> str:
        return f"{self.rule_class} rule"

    def get_attribute_definition(self, name: str) -> Optional[Attribute]:
        return self.attributes.get(name)

    def is_attribute_value_explicitly_specified(self, name: str) -> bool:
        return name in self.values

    def get_raw_value(self, name: str) -> Any:
        """Stored value (plain or Select), falling back to the attribute default."""
        if name in self.values:
            return self.values[name]
        return self.attributes[name].get_default()


class PackageGroupNode(TargetNode):
    """Named, composable set of package specifications."""
    target_type: TargetType = TargetType.PACKAGE_GROUP
    visibility: RuleVisibility = Field(default=PUBLIC, discriminator="kind")
    includes: List[Label] = Field(default_factory=list)
    packages: List[PackageSpecification] = Field(default_factory=list)


class FileNode(TargetNode):
    """Source or generated file."""
    target_type: TargetType = TargetType.SOURCE_FILE
    generating_rule: Optional[Label] = None

    @model_validator(mode="after")
    def _check_file_type(self) -> 'FileNode':
        if self.target_type not in (TargetType.SOURCE_FILE, TargetType.GENERATED_FILE):
            raise ValueError(f"File target {self.label} has non-file type {self.target_type}")
        if (self.target_type == TargetType.GENERATED_FILE) != (self.generating_rule is not None):
            raise ValueError(f"Generated file {self.label} must name exactly its generating rule")
        return self
