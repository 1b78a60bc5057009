"""Tests for the unreloader CLI."""

import os
import subprocess
import sys
from pathlib import Path

SRC = Path(__file__).resolve().parent.parent / "src"
ENV = {
    **os.environ,
    "PYTHONPATH": os.pathsep.join(filter(None, [str(SRC), os.environ.get("PYTHONPATH")])),
}


def run_cli(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "unreloader.cli", *args],
        capture_output=True,
        text=True,
        cwd=cwd,
        timeout=30,
        env=ENV,
    )


class TestServeCommand:
    """Tests for serve command."""

    def test_serve_help(self):
        """Test serve help text."""
        result = run_cli("serve", "--help")

        assert result.returncode == 0
        assert "reloading changed files" in result.stdout
        assert "--require" in result.stdout
        assert "--cooldown" in result.stdout

    def test_serve_requires_app(self, tmp_path: Path):
        """Serving without an app name is a usage error."""
        result = run_cli("serve", "--require", "app.py", cwd=tmp_path)

        assert result.returncode == 2
        assert "No app given" in result.stderr


class TestInspectCommand:
    """Tests for inspect command."""

    def test_inspect_lists_units(self, tmp_path: Path):
        """Inspect shows each unit with what it defined."""
        (tmp_path / "models.py").write_text("class Model:\n    pass\n")
        (tmp_path / "app.py").write_text(
            "unreloader.require('models.py')\nclass App:\n    pass\n"
        )

        result = run_cli("inspect", "app.py", cwd=tmp_path)

        assert result.returncode == 0
        assert "Loaded Units" in result.stdout
        assert "App" in result.stdout
        assert "Model" in result.stdout

    def test_inspect_reports_failures(self, tmp_path: Path):
        """A unit that raises makes inspect fail."""
        (tmp_path / "broken.py").write_text("raise RuntimeError('nope')\n")

        result = run_cli("inspect", "broken.py", cwd=tmp_path)

        assert result.returncode == 1
        assert "Failed to load" in result.stdout
