#!/usr/bin/env python3
"""
bqctl - build graph query CLI

Inspect targets of a serialized build graph: kinds, attributes, label
dependencies and resolved visibility.
"""
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from buildquery.config import AccessorConfig
from buildquery.graph.schema import Label, TargetNode
from buildquery.graph.store import GraphStore, TargetNotFoundError
from buildquery.query.accessor import GraphTargetAccessor
from buildquery.query.base import Diagnostic, QueryException
from buildquery.query.environment import GraphQueryEnvironment


def _print_diagnostic(diagnostic: Diagnostic):
    print(f"Warning: {diagnostic.message}", file=sys.stderr)


class BuildQueryCLI:
    """Build graph query CLI over a loaded GraphStore."""

    def __init__(self, store: GraphStore, config: Optional[AccessorConfig] = None):
        self.store = store
        self.environment = GraphQueryEnvironment(store, sink=_print_diagnostic)
        self.accessor = GraphTargetAccessor(self.environment, config)

    def _target(self, label: str) -> TargetNode:
        return self.environment.get_target(Label.parse(label))

    def kind(self, label: str) -> None:
        """Print the target's kind."""
        print(self.accessor.get_target_kind(self._target(label)))

    def attr(self, label: str, attr_name: str) -> None:
        """Print every value the attribute can take, one per line."""
        target = self._target(label)
        for value in self.accessor.get_attr_as_string(target, attr_name):
            print(value if value is not None else "None")

    def deps(self, label: str, attr_name: str) -> None:
        """Print the labels of targets referenced by a label attribute."""
        expression = f"labels({attr_name}, {label})"
        target = self._target(label)
        for dep in self.accessor.get_label_list_attr(
            expression, target, attr_name, f"in {attr_name} of {label}: "
        ):
            print(self.accessor.get_label(dep))

    def visibility(self, label: str) -> None:
        """Print the resolved visibility entries, sorted."""
        entries = self.accessor.get_visibility(self._target(label))
        for entry in sorted(str(e) for e in entries):
            print(entry)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Build graph query CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--graph',
        default=os.environ.get('BUILDQUERY_GRAPH'),
        help='YAML graph document (default: $BUILDQUERY_GRAPH)'
    )

    parser.add_argument(
        '--config',
        help='Accessor config YAML (default: BUILDQUERY_* environment variables)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # kind
    kind_parser = subparsers.add_parser('kind', help='Show the kind of a target')
    kind_parser.add_argument('label', help='Target label (e.g., //foo:lib)')

    # attr
    attr_parser = subparsers.add_parser('attr', help='Show every value of an attribute')
    attr_parser.add_argument('label', help='Target label')
    attr_parser.add_argument('attr_name', help='Attribute name')

    # deps
    deps_parser = subparsers.add_parser('deps', help='List targets referenced by a label attribute')
    deps_parser.add_argument('label', help='Target label')
    deps_parser.add_argument('attr_name', help='Label attribute name (e.g., deps)')

    # visibility
    visibility_parser = subparsers.add_parser('visibility', help='Show resolved visibility of a target')
    visibility_parser.add_argument('label', help='Target label')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if not args.graph:
        print("Error: no graph given", file=sys.stderr)
        print("Set via --graph or BUILDQUERY_GRAPH environment variable", file=sys.stderr)
        sys.exit(1)

    try:
        config = AccessorConfig.from_yaml(Path(args.config)) if args.config else AccessorConfig.from_env()
        logging.basicConfig(level=config.log_level, format='%(levelname)s %(name)s: %(message)s')
        cli = BuildQueryCLI(GraphStore.from_yaml(Path(args.graph)), config)

        if args.command == 'kind':
            cli.kind(args.label)
        elif args.command == 'attr':
            cli.attr(args.label, args.attr_name)
        elif args.command == 'deps':
            cli.deps(args.label, args.attr_name)
        elif args.command == 'visibility':
            cli.visibility(args.label)
        else:
            parser.print_help()
            sys.exit(1)
    except (QueryException, TargetNotFoundError) as e:
        print(f"Query Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
