"""
Pytest configuration for unit tests.

Provides a small build graph shared by the accessor, store and CLI tests.
"""
import pytest
import yaml

from buildquery.graph.store import GraphStore
from buildquery.query.accessor import GraphTargetAccessor
from buildquery.query.environment import GraphQueryEnvironment


SAMPLE_GRAPH = {
    'packages': {
        'foo': {
            'default_visibility': ['//visibility:private'],
            'rules': [
                {
                    'name': 'lib',
                    'rule_class': 'cc_library',
                    'visibility': ['//groups:g1', '//app:__pkg__'],
                    'attributes': {
                        'srcs_version': {'type': 'string', 'value': 'PY3'},
                        'tags': {'type': 'string_list', 'value': ['fast', 'manual']},
                        'deps': {'type': 'label_list', 'value': [':util', '//bar:helper', ':util']},
                        'linkstatic': {
                            'type': 'boolean',
                            'select': {'//conditions:opt': True, '//conditions:default': False},
                        },
                        'stamp': {'type': 'tristate', 'value': -1},
                        'copts': {
                            'type': 'string_list',
                            'select': {'//conditions:arm': ['-marm'], '//conditions:default': []},
                        },
                        'arch_deps': {
                            'type': 'label_list',
                            'select': {
                                '//conditions:arm': [':arm_impl', ':util'],
                                '//conditions:default': [':util'],
                            },
                        },
                        'malloc': {'type': 'label', 'value': None},
                        'linkopts': {'type': 'string_list', 'configurable': True, 'value': ['-lm']},
                    },
                },
                {
                    'name': 'util',
                    'rule_class': 'cc_library',
                    'visibility': ['//visibility:public'],
                },
                {'name': 'arm_impl', 'rule_class': 'cc_library'},
                {
                    'name': 'broken',
                    'rule_class': 'cc_library',
                    'attributes': {
                        'deps': {'type': 'label_list', 'value': [':util', '//nowhere:thing']},
                    },
                    'visibility': ['//groups:missing'],
                },
                {'name': 'lib_test', 'rule_class': 'cc_test'},
                {'name': 'all_tests', 'rule_class': 'test_suite'},
            ],
            'files': [
                {'name': 'lib.cc'},
                {'name': 'lib.o', 'generating_rule': ':lib'},
            ],
        },
        'bar': {
            'rules': [
                {'name': 'helper', 'rule_class': 'py_library', 'visibility': ['//foo:__subpackages__']},
            ],
        },
        'groups': {
            'package_groups': [
                {'name': 'g1', 'includes': [':g2'], 'packages': ['//app']},
                {'name': 'g2', 'packages': ['//foo/...']},
                {'name': 'cyc_a', 'includes': [':cyc_b'], 'packages': ['//a']},
                {'name': 'cyc_b', 'includes': [':cyc_a'], 'packages': ['//b']},
            ],
        },
        'app': {},
    },
}


@pytest.fixture
def sample_graph():
    """Provide the sample graph document."""
    return SAMPLE_GRAPH


@pytest.fixture
def graph_file(tmp_path):
    """Write the sample graph to a YAML file."""
    path = tmp_path / "graph.yaml"
    with open(path, 'w') as f:
        yaml.dump(SAMPLE_GRAPH, f)
    return path


@pytest.fixture
def store():
    """Provide a store loaded with the sample graph."""
    graph = GraphStore()
    graph.load_graph(SAMPLE_GRAPH)
    return graph


@pytest.fixture
def environment(store):
    """Provide a query environment over the sample store."""
    return GraphQueryEnvironment(store)


@pytest.fixture
def accessor(environment):
    """Provide a target accessor over the sample environment."""
    return GraphTargetAccessor(environment)
