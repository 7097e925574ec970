import json, logging, os

import pytest

from forcbench.cli import main

posix_only = pytest.mark.skipif(os.name != "posix", reason="stand-in compiler needs a shebang")


def test_empty_tests_dir_writes_report(tests_root, tmp_path):
    out = tmp_path / "benchmarks.json"
    assert main(["--tests-dir", str(tests_root), "--output", str(out), "--no-summary"]) == 0
    doc = json.loads(out.read_text())
    assert doc["benchmarks"] == []
    assert doc["system_specs"]["total_memory"] > 0


def test_missing_tests_dir_fails_without_writing(tmp_path):
    out = tmp_path / "benchmarks.json"
    out.write_text("previous")
    assert main(["--tests-dir", str(tmp_path / "missing"), "--output", str(out), "-q"]) == 1
    assert out.read_text() == "previous"


@posix_only
def test_full_run(tests_root, make_project, fake_forc_exe, tmp_path, capsys):
    make_project("counter", group="should_pass")
    make_project("storage", group="should_pass")
    exe = fake_forc_exe("  /forc-perf start parse", "Compiling contract", "/forc-perf stop parse",
                        "/forc-perf size 1234")
    out = tmp_path / "benchmarks.json"
    assert main(["--forc", str(exe), "--tests-dir", str(tests_root), "--output", str(out)]) == 0

    doc = json.loads(out.read_text())
    assert [b["name"] for b in doc["benchmarks"]] == ["counter", "storage"]
    for b in doc["benchmarks"]:
        assert b["bytecode_size"] == 1234
        assert [p["name"] for p in b["phases"]] == ["parse"]
        assert set(b["phases"][0]["end_time"]) == {"secs", "nanos"}
    assert "Benchmarking took" in capsys.readouterr().out


@posix_only
def test_protocol_violation_aborts_run(tests_root, make_project, fake_forc_exe, tmp_path):
    make_project("broken")
    exe = fake_forc_exe("/forc-perf stop never-started")
    out = tmp_path / "benchmarks.json"
    assert main(["--forc", str(exe), "--tests-dir", str(tests_root), "--output", str(out), "-q"]) == 1
    assert not out.exists()


def test_collection_error_not_blamed_on_report(tests_root, tmp_path, monkeypatch, caplog):
    def no_specs():
        raise OSError("/proc is not mounted")
    monkeypatch.setattr("forcbench.cli.system_specs", no_specs)
    caplog.set_level(logging.ERROR, logger="forcbench")
    out = tmp_path / "benchmarks.json"
    assert main(["--tests-dir", str(tests_root), "--output", str(out), "--no-summary"]) == 1
    assert "/proc is not mounted" in caplog.text
    assert "could not write" not in caplog.text
    assert not out.exists()


def test_unwritable_report(tests_root, tmp_path, caplog):
    caplog.set_level(logging.ERROR, logger="forcbench")
    out = tmp_path / "taken"
    out.mkdir()
    assert main(["--tests-dir", str(tests_root), "--output", str(out), "--no-summary"]) == 1
    assert "could not write" in caplog.text
    assert out.is_dir()
