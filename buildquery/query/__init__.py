"""
Query-side view of the build graph.

- TargetAccessor: contract the query evaluator uses to inspect targets
- GraphTargetAccessor: implementation over a GraphStore-backed environment
- QueryVisibility: resolved visibility entries
"""
