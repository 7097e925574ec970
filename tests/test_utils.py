import json

import pytest

from forcbench.errors import DiscoveryError, ManifestError
from forcbench.utils import ensure_project, generate_benchmarks, system_specs, verify_path


def test_discovery_depth_two_with_manifest(tests_root, make_project):
    make_project("b_proj", group="should_pass")
    make_project("a_proj", group="should_pass")
    make_project("no_manifest", group="should_pass", manifest=False)
    make_project("other", group="language")
    # depth 1 and depth 3 never qualify
    (tests_root / "Forc.toml").write_text("")
    shallow = tests_root / "shallow"
    shallow.mkdir()
    (shallow / "Forc.toml").write_text("")
    deep = tests_root / "language" / "other" / "nested"
    deep.mkdir()
    (deep / "Forc.toml").write_text("")

    found = generate_benchmarks(tests_root)
    assert [b.name for b in found] == ["other", "a_proj", "b_proj"]
    for b in found:
        assert b.path.is_absolute() and b.path.name == b.name
        assert b.phases == [] and b.frames == [] and b.start_time is None


def test_empty_tests_dir(tests_root):
    assert generate_benchmarks(tests_root) == []


def test_missing_tests_dir(tmp_path):
    with pytest.raises(DiscoveryError):
        generate_benchmarks(tmp_path / "nope")


def test_verify_path(make_project, tmp_path):
    ok = make_project("ok")
    bare = make_project("bare", manifest=False)
    assert verify_path(ok)
    assert not verify_path(bare)
    assert not verify_path(tmp_path / "missing")
    assert not verify_path(ok / "Forc.toml")
    with pytest.raises(ManifestError):
        ensure_project(bare)


def test_system_specs_snapshot():
    specs = system_specs()
    assert specs.total_memory > 0
    assert specs.cpus and specs.cpus[0].name == "cpu0"
    assert specs.boot_time > 0 and specs.uptime >= 0
    assert specs.host_name
    doc = json.loads(specs.model_dump_json())
    assert "global_cpu_usage" not in doc
    assert all("cpu_usage" not in c for c in doc["cpus"])
