"""
Plugin CLI Tests

Runs the command-line tool against manifest directories and checks its output.
"""

import contextlib
import io
import json
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import plugin_cli


def write_plugins(directory: Path, manifests):
    directory.mkdir(parents=True, exist_ok=True)
    for manifest in manifests:
        (directory / f"{manifest['name']}.json").write_text(json.dumps(manifest), encoding="utf-8")


def run_cli(*argv):
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        code = plugin_cli.main(list(argv))
    return code, out.getvalue()


def make_tree(tmp: Path):
    write_plugins(tmp / "core", [
        {"name": "core", "version": "1.0"},
        {"name": "legacy", "version": "0.9"},
    ])
    write_plugins(tmp / "user", [
        {"name": "app", "version": "2.0", "dependencies": {"core": "1.0 > *"}, "observe": ["core"]},
        {"name": "modern", "version": "1.0", "evicts": ["legacy"]},
        {"name": "orphan", "version": "1.0", "dependencies": {"missing": "*"}},
    ])
    return ["--core", str(tmp / "core"), "--user", str(tmp / "user"), "--env", "development"]


def test_order_and_status():
    with tempfile.TemporaryDirectory() as tmp:
        args = make_tree(Path(tmp))

        code, output = run_cli(*args, "order")
        assert code == 0
        assert output.index("core") < output.index("app")
        assert "legacy" not in output
        assert "orphan" not in output

        code, output = run_cli(*args, "status")
        assert code == 0
        assert "Failed Plugins: 1" in output
        assert "legacy (by modern)" in output
    print("✅ Order and status printed")


def test_info_failed_and_observers():
    with tempfile.TemporaryDirectory() as tmp:
        args = make_tree(Path(tmp))

        _, output = run_cli(*args, "info", "app")
        assert "Dependencies: core 1.0 > *" in output
        assert "Source: user" in output

        _, output = run_cli(*args, "info", "legacy")
        assert "evicted" in output

        _, output = run_cli(*args, "failed")
        assert "orphan" in output and "missing * (missing)" in output

        _, output = run_cli(*args, "observers", "core")
        assert "app" in output
    print("✅ Info, failed and observers printed")


def test_broken_manifest_reports_error():
    with tempfile.TemporaryDirectory() as tmp:
        core = Path(tmp) / "core"
        core.mkdir()
        (core / "broken.json").write_text("{", encoding="utf-8")

        code, output = run_cli("--core", str(core), "order")
        assert code == 1
        assert output.startswith("Error:")
    print("✅ Broken manifest reported")


def main():
    """Run all CLI tests."""
    print("🧪 PLUGIN CLI TESTS")
    print("=" * 70)

    try:
        test_order_and_status()
        test_info_failed_and_observers()
        test_broken_manifest_reports_error()
        print("\n🎉 ALL CLI TESTS PASSED!")
        return True
    except Exception as e:
        print(f"\n❌ Test failed: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
