"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Isolation from the developer's database
- Shared sample scapes
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

from scapekit.document import ScapeDraft, new_draft

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Environment Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def scape_db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from the configured SCAPE_DB_PATH."""
    db_path = tmp_path / "scapes.db"
    monkeypatch.setenv("SCAPE_DB_PATH", str(db_path))
    return db_path


# =============================================================================
# Common Test Fixtures
# =============================================================================


@pytest.fixture
def sample_draft() -> ScapeDraft:
    """A publishable three-widget scape.

    Returns:
        Draft with a header, a featured gallery and a text block.
    """
    draft = (
        new_draft("Night Market")
        .set_tagline("Street food after dark")
        .add_widget("header", "header-title")
        .add_widget("gallery", "gallery-grid")
        .add_widget("text", "text-medium")
    )
    gallery_id = draft.widgets[1].id
    return draft.set_feature(gallery_id).set_featured_caption(gallery_id, "Stalls at midnight")


@pytest.fixture
def sample_scape_json(sample_draft: ScapeDraft) -> dict[str, Any]:
    """JSON form of ``sample_draft``."""
    return sample_draft.to_dict()


@pytest.fixture
def sample_scape_file(tmp_path: Path, sample_scape_json: dict[str, Any]) -> Path:
    """``sample_scape_json`` written to disk."""
    path = tmp_path / "scape.json"
    path.write_text(json.dumps(sample_scape_json), encoding="utf-8")
    return path
