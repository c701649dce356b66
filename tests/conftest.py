# tests/conftest.py
import textwrap

import pytest

from a11y_auditor.dom.builder import DOMBuilder
from a11y_auditor.rules.core import CheckContext


@pytest.fixture
def template_root(tmp_path):
    """Een lege views-map per test."""
    root = tmp_path / "views"
    root.mkdir()
    return root


@pytest.fixture
def write_template(template_root):
    """
    Schrijft een template onder de template_root.
    De inhoud wordt gededent en begint op regel 1.
    """
    def _write(relative, content=""):
        path = template_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def parse():
    """Parst markup naar een StaticDocument."""
    builder = DOMBuilder()
    return builder.parse


@pytest.fixture
def context():
    return CheckContext(file="views/test.html.erb")
