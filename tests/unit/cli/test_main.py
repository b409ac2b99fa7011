"""Unit tests for CLI command handling."""

from __future__ import annotations

import json

from cli.main import main


def _repo_args(tmp_path) -> list[str]:
    return ["--repo", str(tmp_path / "repo"), "--layout", "default"]


def test_cli_init_writes_config_blob(tmp_path, capsys) -> None:
    """Init should create the repository and a parseable config blob."""
    exit_code = main([*_repo_args(tmp_path), "init"])
    capsys.readouterr()

    config_payload = json.loads((tmp_path / "repo" / "config").read_text(encoding="utf-8"))

    assert exit_code == 0 and config_payload["version"] == 1


def test_cli_init_twice_reports_existing_config(tmp_path, capsys) -> None:
    """A second init should fail with an error row instead of a traceback."""
    main([*_repo_args(tmp_path), "init"])
    capsys.readouterr()

    exit_code = main([*_repo_args(tmp_path), "init"])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=Create:")


def test_cli_put_cat_stat_ls_rm_flow(tmp_path, capsys) -> None:
    """Blob commands should roundtrip a file through the repository."""
    source = tmp_path / "payload.bin"
    source.write_bytes(b"0123456789")
    main([*_repo_args(tmp_path), "init"])
    capsys.readouterr()

    main([*_repo_args(tmp_path), "put", "data", str(source)])
    name = capsys.readouterr().out.strip()
    main([*_repo_args(tmp_path), "cat", "data", name, "--offset", "3", "--length", "4"])
    ranged = capsys.readouterr().out
    main([*_repo_args(tmp_path), "stat", "data", name])
    size_row = capsys.readouterr().out.strip()
    main([*_repo_args(tmp_path), "ls", "data"])
    listed = capsys.readouterr().out.strip().splitlines()
    rm_code = main([*_repo_args(tmp_path), "rm", "data", name])
    capsys.readouterr()
    stat_code = main([*_repo_args(tmp_path), "stat", "data", name])

    assert len(name) == 64 and ranged == "3456" and size_row == "size=10"
    assert listed == [name] and rm_code == 0 and stat_code == 1


def test_cli_destroy_requires_confirmation(tmp_path, capsys) -> None:
    """Destroy without --yes should leave the repository in place."""
    main([*_repo_args(tmp_path), "init"])
    capsys.readouterr()

    refused = main([*_repo_args(tmp_path), "destroy"])
    confirmed = main([*_repo_args(tmp_path), "destroy", "--yes"])

    assert refused == 2 and confirmed == 0 and not (tmp_path / "repo").exists()


def test_cli_open_missing_repository_fails(tmp_path, capsys) -> None:
    """Commands on a repository that was never created should exit non-zero."""
    exit_code = main([*_repo_args(tmp_path), "ls", "snapshot"])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=Open:")


def test_cli_put_missing_file_reports_error(tmp_path, capsys) -> None:
    """An unreadable input file should produce an error row, not a traceback."""
    main([*_repo_args(tmp_path), "init"])
    capsys.readouterr()

    exit_code = main([*_repo_args(tmp_path), "put", "data", str(tmp_path / "missing.bin")])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=") and "missing.bin" in output
