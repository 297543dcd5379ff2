"""
Query-facing visibility entries.

A target's resolved visibility is a set of these entries; a target may depend
on it if any entry contains the depending target.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from buildquery.graph.schema import PackageSpecification, TargetNode


class QueryVisibility(ABC):
    """One grant in a resolved visibility set."""

    @abstractmethod
    def contains(self, target: TargetNode, accessor) -> bool:
        """Whether ``target`` is granted visibility by this entry."""
        pass


@dataclass(frozen=True)
class SamePackageVisibility(QueryVisibility):
    """Visible to targets in ``package``."""
    package: str

    def contains(self, target: TargetNode, accessor) -> bool:
        return accessor.get_package(target) == self.package

    def __str__(self) -> str:
        return f"//{self.package}:__pkg__"


@dataclass(frozen=True)
class EverythingVisibility(QueryVisibility):
    """Visible to every target."""

    def contains(self, target: TargetNode, accessor) -> bool:
        return True

    def __str__(self) -> str:
        return "//visibility:public"


@dataclass(frozen=True)
class PackageSpecVisibility(QueryVisibility):
    """Visible to targets whose package matches ``spec``."""
    spec: PackageSpecification

    def contains(self, target: TargetNode, accessor) -> bool:
        return self.spec.contains_package(accessor.get_package(target))

    def __str__(self) -> str:
        return str(self.spec)


EVERYTHING = EverythingVisibility()


def same_package(target: TargetNode, accessor) -> SamePackageVisibility:
    return SamePackageVisibility(package=accessor.get_package(target))
