"""
Unit tests for bqctl CLI.
"""
import sys

import pytest
import yaml
from unittest.mock import patch

from buildquery.cli.bqctl import BuildQueryCLI, main
from buildquery.config import AccessorConfig
from buildquery.graph.store import TargetNotFoundError


class TestBuildQueryCLI:
    """Test bqctl CLI commands."""

    def test_kind(self, store, capsys):
        BuildQueryCLI(store).kind("//foo:lib")
        assert capsys.readouterr().out == "cc_library rule\n"

    def test_attr(self, store, capsys):
        BuildQueryCLI(store).attr("//foo:lib", "linkstatic")
        assert capsys.readouterr().out == "1\n0\n"

    def test_attr_null_value(self, store, capsys):
        BuildQueryCLI(store).attr("//foo:lib", "malloc")
        assert capsys.readouterr().out == "None\n"

    def test_deps(self, store, capsys):
        BuildQueryCLI(store).deps("//foo:lib", "deps")
        assert capsys.readouterr().out == "//foo:util\n//bar:helper\n"

    def test_deps_reports_missing_labels(self, store, capsys):
        cli = BuildQueryCLI(store)
        cli.deps("//foo:broken", "deps")

        captured = capsys.readouterr()
        assert captured.out == "//foo:util\n"
        assert "Warning: in deps of //foo:broken: no such target '//nowhere:thing'" in captured.err
        assert len(cli.environment.diagnostics) == 1

    def test_visibility(self, store, capsys):
        BuildQueryCLI(store).visibility("//foo:lib")
        assert capsys.readouterr().out == "//app\n//foo/...\n//foo:__pkg__\n"

    def test_unknown_target(self, store):
        with pytest.raises(TargetNotFoundError):
            BuildQueryCLI(store).kind("//foo:nope")

    def test_config_is_used(self, store):
        cli = BuildQueryCLI(store, AccessorConfig(package_group_cycles="error"))
        assert cli.accessor.config.package_group_cycles == "error"


class TestMain:
    """Test bqctl argument handling and exit codes."""

    def _run(self, argv):
        with patch.object(sys, 'argv', ['bqctl'] + argv):
            main()

    def test_visibility_command(self, graph_file, capsys):
        self._run(['--graph', str(graph_file), 'visibility', '//foo:util'])
        assert capsys.readouterr().out == "//foo:__pkg__\n//visibility:public\n"

    def test_config_file(self, graph_file, tmp_path, capsys):
        config_file = tmp_path / "accessor.yaml"
        with open(config_file, 'w') as f:
            yaml.dump({'package_group_cycles': 'error'}, f)

        self._run(['--graph', str(graph_file), '--config', str(config_file), 'kind', '//groups:g1'])
        assert capsys.readouterr().out == "package group\n"

    def test_no_command(self, graph_file):
        with pytest.raises(SystemExit) as exc_info:
            self._run(['--graph', str(graph_file)])
        assert exc_info.value.code == 1

    def test_no_graph(self, monkeypatch, capsys):
        monkeypatch.delenv('BUILDQUERY_GRAPH', raising=False)
        with pytest.raises(SystemExit) as exc_info:
            self._run(['kind', '//foo:lib'])

        assert exc_info.value.code == 1
        assert "no graph given" in capsys.readouterr().err

    def test_graph_from_env(self, graph_file, monkeypatch, capsys):
        monkeypatch.setenv('BUILDQUERY_GRAPH', str(graph_file))
        self._run(['kind', '//foo:lib.o'])
        assert capsys.readouterr().out == "generated file\n"

    def test_query_error_exits(self, graph_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            self._run(['--graph', str(graph_file), 'visibility', '//foo:broken'])

        assert exc_info.value.code == 1
        assert "Query Error: no such target '//groups:missing'" in capsys.readouterr().err

    def test_missing_graph_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            self._run(['--graph', str(tmp_path / "missing.yaml"), 'kind', '//foo:lib'])

        assert exc_info.value.code == 1
        assert "Graph file not found" in capsys.readouterr().err
