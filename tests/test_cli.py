"""
Tests for the clusterview CLI.

Commands run against a cluster dump written to a temp directory.
"""

import json

import pytest
from typer.testing import CliRunner

from clusterview.cli.main import app
from clusterview.preferences import SqlitePreferenceStore
from clusterview.refresh.clock import DEFAULT_PREFERENCE_KEY

runner = CliRunner()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def dump(tmp_path):
    """Cluster dump with two data nodes and a master-only node."""
    path = tmp_path / "cluster.json"
    path.write_text(
        json.dumps(
            {
                "nodes": [
                    {"id": "n1", "name": "es-1", "roles": ["data"], "isMaster": True},
                    {"id": "n2", "name": "es-2", "roles": ["data"]},
                    {"id": "n3", "name": "master-1", "roles": ["master"]},
                ],
                "shards": [
                    {"index": "logs", "shard": 0, "primary": True, "state": "STARTED", "node": "n1"},
                    {"index": "logs", "shard": 0, "primary": False, "state": "UNASSIGNED"},
                    {"index": "logs", "shard": 1, "primary": True, "state": "STARTED", "node": "gone"},
                ],
                "indices": [
                    {"name": "logs", "health": "yellow", "status": "open",
                     "primaryShards": 2, "replicaShards": 1},
                    {"name": "old", "health": "green", "status": "close"},
                ],
            }
        )
    )
    return path


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "preferences.db"


# =============================================================================
# topology show
# =============================================================================


class TestTopologyShow:
    def test_show(self, dump):
        result = runner.invoke(app, ["topology", "show", str(dump)])

        assert result.exit_code == 0
        assert "es-1" in result.output
        assert "logs" in result.output
        assert "Shards: 3 total" in result.output
        assert "1 shard(s) reference unknown nodes" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["topology", "show", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "Cannot read" in result.output

    def test_malformed_dump(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"shards": [{"index": "logs"}]}))

        result = runner.invoke(app, ["topology", "show", str(path)])
        assert result.exit_code == 1
        assert "Malformed cluster payload" in result.output


# =============================================================================
# relocate check
# =============================================================================


class TestRelocateCheck:
    def test_approved(self, dump):
        result = runner.invoke(
            app,
            ["relocate", "check", str(dump), "--index", "logs", "--shard", "0",
             "--from", "n1", "--to", "es-2"],
        )
        assert result.exit_code == 0
        assert "Approved" in result.output

    def test_rejected(self, dump):
        result = runner.invoke(
            app,
            ["relocate", "check", str(dump), "--index", "logs", "--shard", "0",
             "--from", "n1", "--to", "n3"],
        )
        assert result.exit_code == 1
        assert "Rejected(dest_not_data_node)" in result.output
        assert "Valid destinations: es-2" in result.output

    def test_unassigned_replica(self, dump):
        result = runner.invoke(
            app,
            ["relocate", "check", str(dump), "--index", "logs", "--shard", "0",
             "--replica", "--from", "n1", "--to", "n2"],
        )
        assert result.exit_code == 1
        assert "cannot_relocate_unassigned" in result.output

    def test_missing_shard(self, dump):
        result = runner.invoke(
            app,
            ["relocate", "check", str(dump), "--index", "other", "--shard", "0",
             "--from", "n1", "--to", "n2"],
        )
        assert result.exit_code == 1
        assert "shard_missing" in result.output


# =============================================================================
# bulk check
# =============================================================================


class TestBulkCheck:
    def test_partial(self, dump):
        result = runner.invoke(
            app, ["bulk", "check", str(dump), "logs", "old", "nope", "--operation", "open"]
        )
        assert result.exit_code == 0
        assert "1 will be affected, 2 will be ignored" in result.output
        assert "Index not found" in result.output

    def test_nothing_approved(self, dump):
        result = runner.invoke(
            app, ["bulk", "check", str(dump), "logs", "--operation", "set_writable"]
        )
        assert result.exit_code == 1

    def test_unknown_operation(self, dump):
        result = runner.invoke(app, ["bulk", "check", str(dump), "logs", "--operation", "shrink"])
        assert result.exit_code != 0


# =============================================================================
# refresh interval
# =============================================================================


class TestRefreshInterval:
    def test_default(self, db_path):
        result = runner.invoke(app, ["refresh", "interval", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "Refresh interval: 15s (scheduled)" in result.output

    def test_set_label(self, db_path):
        result = runner.invoke(app, ["refresh", "interval", "--set", "off", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "Refresh interval: off (idle)" in result.output
        assert SqlitePreferenceStore(db_path).get(DEFAULT_PREFERENCE_KEY) == "0"

    def test_set_milliseconds_persists(self, db_path):
        runner.invoke(app, ["refresh", "interval", "--set", "30000", "--db", str(db_path)])
        result = runner.invoke(app, ["refresh", "interval", "--db", str(db_path)])
        assert "Refresh interval: 30s" in result.output

    def test_unlisted_milliseconds_not_restored(self, db_path):
        result = runner.invoke(app, ["refresh", "interval", "--set", "45000", "--db", str(db_path)])
        assert "Refresh interval: 45000ms" in result.output

        result = runner.invoke(app, ["refresh", "interval", "--db", str(db_path)])
        assert "Refresh interval: 15s" in result.output

    @pytest.mark.parametrize("value", ["-5", "fast"])
    def test_invalid(self, db_path, value):
        result = runner.invoke(app, ["refresh", "interval", f"--set={value}", "--db", str(db_path)])
        assert result.exit_code == 1
        assert "Invalid refresh interval" in result.output

    def test_choices(self):
        result = runner.invoke(app, ["refresh", "interval", "--choices"])
        assert result.exit_code == 0
        assert "300000" in result.output


class TestMain:
    def test_verbose_flag(self, dump):
        result = runner.invoke(app, ["--verbose", "topology", "show", str(dump)])
        assert result.exit_code == 0
