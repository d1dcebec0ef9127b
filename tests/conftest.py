"""Pytest configuration and fixtures."""
from pathlib import Path

import pytest

from template_composer.config import CompileMode, set_compile_mode


def write_template(path: Path, content: str) -> Path:
    """Write a template file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def production_mode():
    """Run every test in production mode and restore it afterwards."""
    set_compile_mode(CompileMode.PRODUCTION)
    yield
    set_compile_mode(CompileMode.PRODUCTION)


@pytest.fixture
def template_dir(tmp_path):
    """Create a template tree with a base template and several block sets."""
    write_template(
        tmp_path / "base.tmpl",
        "<h1>[% block greeting %]default[% endblock %]</h1>"
        "<p>[% block body %]body[% endblock %]</p>"
    )
    write_template(tmp_path / "blocks" / "greeting.tmpl", "[% block greeting %]overridden[% endblock %]")
    write_template(tmp_path / "a" / "greeting.tmpl", "[% block greeting %]from a[% endblock %]")
    write_template(tmp_path / "b" / "greeting.tmpl", "[% block greeting %]from b[% endblock %]")
    write_template(tmp_path / "b" / "body.tmpl", "[% block body %]body from b[% endblock %]")
    return tmp_path


@pytest.fixture
def base_path(template_dir):
    return str(template_dir / "base.tmpl")


@pytest.fixture
def write_file():
    """Return a helper writing template files."""
    return write_template
