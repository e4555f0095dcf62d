"""
Tests for the CLI
"""

import pandas as pd
import pytest
from click.testing import CliRunner

from warmpath import __version__
from warmpath.main import cli


@pytest.fixture
def export_dir(tmp_path):
    """Write a small graph export: alice - bob - dave."""
    export = tmp_path / "export"
    export.mkdir()
    (export / "people.csv").write_text(
        "id,names\nalice,Alice Johnson\nbob,Bob Williams\ndave,Dave Brown\n"
    )
    (export / "edges.csv").write_text(
        "id,from_person_id,to_person_id,strength,channels\n"
        "e1,alice,bob,0.9,email\n"
        "e2,dave,bob,0.8,linkedin\n"
    )
    (export / "evidence.csv").write_text(
        "id,subject_person_id,object_person_id,type,timestamp,source\n"
        "ev1,alice,bob,email_sent,2024-05-01,gmail\n"
    )
    return export


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(cli, ["version"], obj={})
    assert result.exit_code == 0
    assert __version__ in result.output


def test_stats(runner, export_dir):
    result = runner.invoke(cli, ["stats", "-i", str(export_dir)], obj={})

    assert result.exit_code == 0
    assert "people.csv" in result.output
    assert "organizations.csv" in result.output


def test_paths(runner, export_dir, tmp_path):
    out = tmp_path / "reports"
    result = runner.invoke(
        cli,
        ["paths", "-i", str(export_dir), "-s", "alice", "-t", "dave", "-o", str(out), "-f", "json"],
        obj={},
    )

    assert result.exit_code == 0
    assert "Found 1 paths" in result.output
    assert len(list(out.glob("warm_paths_dave*.json"))) == 1


def test_paths_missing_edges_file(runner, tmp_path):
    (tmp_path / "people.csv").write_text("id,names\nalice,Alice\n")

    result = runner.invoke(
        cli, ["paths", "-i", str(tmp_path), "-s", "alice", "-t", "bob"], obj={}
    )

    assert result.exit_code == 1
    assert "Error loading data" in result.output


def test_score(runner, export_dir, tmp_path):
    out = tmp_path / "scores"
    result = runner.invoke(
        cli, ["score", "-i", str(export_dir), "--person", "bob", "-o", str(out)], obj={}
    )

    assert result.exit_code == 0
    assert "Re-scored 2 edges" in result.output
    assert len(list(out.glob("edge_scores*.csv"))) == 1


@pytest.fixture
def linkedin_export_dir(tmp_path):
    """Write an export with LinkedIn evidence carrying UTC offsets."""
    export = tmp_path / "linkedin_export"
    export.mkdir()
    (export / "people.csv").write_text("id,names\nalice,Alice Johnson\nbob,Bob Williams\n")
    (export / "edges.csv").write_text(
        "id,from_person_id,to_person_id,sources,last_seen_at\n"
        "e1,alice,bob,linkedin_archive,2024-05-01T10:00:00Z\n"
    )
    (export / "evidence.csv").write_text(
        "id,subject_person_id,object_person_id,type,timestamp,source\n"
        "ev1,alice,bob,linkedin_connection,2020-01-01T00:00:00Z,linkedin_archive\n"
        "ev2,alice,bob,linkedin_message_sent,2024-05-01T10:00:00+00:00,linkedin_archive\n"
        "ev3,alice,bob,linkedin_message_received,2024-05-02T10:00:00Z,linkedin_archive\n"
    )
    return export


@pytest.mark.parametrize("strategy", ["composite", "linkedin"])
def test_score_with_utc_timestamps(runner, linkedin_export_dir, tmp_path, strategy):
    out = tmp_path / "scores"
    result = runner.invoke(
        cli,
        ["score", "-i", str(linkedin_export_dir), "--strategy", strategy, "--person", "alice", "-o", str(out)],
        obj={},
    )

    assert result.exit_code == 0
    assert "Re-scored 1 edges" in result.output


def test_score_linkedin_csv_keeps_factors(runner, linkedin_export_dir, tmp_path):
    out = tmp_path / "scores"
    result = runner.invoke(
        cli,
        ["score", "-i", str(linkedin_export_dir), "--strategy", "linkedin", "-o", str(out)],
        obj={},
    )

    assert result.exit_code == 0
    df = pd.read_csv(next(out.glob("edge_scores*.csv")))
    for factor in [
        "connection_age",
        "message_recency",
        "message_frequency",
        "reciprocity",
        "thread_depth",
        "multi_party",
    ]:
        assert factor in df.columns
    assert "recency" not in df.columns
    assert df.loc[0, "connection_age"] > 0
    assert df.loc[0, "reciprocity"] == pytest.approx(1.0)
