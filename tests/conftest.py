import os, stat, sys
from pathlib import Path

import pytest

PY = sys.executable


def forc_script(*lines, sleep=0.0, exit_code=0):
    """Body of a stand-in compiler that prints `lines` and exits."""
    body = ["import sys, time"]
    body += [f"print({line!r}, flush=True)" for line in lines]
    if sleep:
        body.append(f"time.sleep({sleep})")
    body.append(f"sys.exit({exit_code})")
    return "\n".join(body) + "\n"


@pytest.fixture
def tests_root(tmp_path):
    root = tmp_path / "tests"
    root.mkdir()
    return root


@pytest.fixture
def make_project(tests_root):
    def _make(name, group="group", manifest=True) -> Path:
        p = tests_root / group / name
        p.mkdir(parents=True)
        if manifest:
            (p / "Forc.toml").write_text(f'[project]\nname = "{name}"\nentry = "main.sw"\n')
        return p.resolve()
    return _make


@pytest.fixture
def fake_forc_args():
    """Argument vector that runs a stand-in compiler through the current interpreter."""
    def _args(*lines, **kw):
        return ["-c", forc_script(*lines, **kw)]
    return _args


@pytest.fixture
def fake_forc_exe(tmp_path):
    """An executable file that accepts `forc build ...` arguments and prints markers."""
    def _exe(*lines, **kw) -> Path:
        exe = tmp_path / "bin" / "forc"
        exe.parent.mkdir(exist_ok=True)
        exe.write_text(f"#!{PY}\n" + forc_script(*lines, **kw))
        exe.chmod(exe.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return exe
    return _exe


