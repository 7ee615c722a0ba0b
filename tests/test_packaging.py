"""Tests for the project metadata."""

import re
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def test_readme_points_at_project_readme():
    pyproject = (PROJECT_ROOT / "pyproject.toml").read_text()
    readme = re.search(r'^readme = "([^"]+)"', pyproject, re.MULTILINE).group(1)

    assert readme == "README.md"
    assert (PROJECT_ROOT / readme).read_text().startswith("# Practice Financial Resiliency Assessment")
