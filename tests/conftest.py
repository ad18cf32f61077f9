"""
Shared test fixtures: small Docusaurus source trees built in tmp_path.
"""

import textwrap
from pathlib import Path

import pytest


INTRO = """\
    ---
    sidebar_position: 1
    ---

    # Introduction

    Welcome to the SDK documentation for builders.

    See the [quick start](./02-guides/01-start.md) and [config](02-guides/02-config.md#options).
"""

START = """\
    # Getting Started

    Install the binary before you begin the tutorial.

    ```bash
    make install
    ```

    <img src="/img/logo.png" alt="logo" />

    Back to the [introduction](../01-intro.md).
"""

CONFIG = """\
    ---
    title: Configuration
    sidebar_label: Config
    ---

    :::note
    Edit `app.toml` before starting.
    :::

    ![Diagram](./diagram.png)
"""


@pytest.fixture
def write_tree():
    """Return a helper that writes {relative path: content} under a root directory."""
    def _write(root: Path, files: dict) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(textwrap.dedent(content), encoding="utf-8")
        return root
    return _write


@pytest.fixture
def docusaurus_site(tmp_path: Path, write_tree) -> Path:
    """A Docusaurus site with a current version (docs/) and one frozen version.

    The frozen version holds byte-identical copies of two current documents.
    """
    return write_tree(tmp_path / "site", {
        "docs/01-intro.md": INTRO,
        "docs/02-guides/01-start.md": START,
        "docs/02-guides/02-config.md": CONFIG,
        "docs/02-guides/diagram.png": b"\x89PNG diagram",
        "versioned_docs/version-0.47/01-intro.md": INTRO,
        "versioned_docs/version-0.47/02-guides/01-start.md": START,
        "static/img/logo.png": b"\x89PNG logo",
    })


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Output directory for a migration run (not created up front)."""
    return tmp_path / "out"
