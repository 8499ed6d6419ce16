from __future__ import annotations

import pathlib

import pytest

from aitoonic import cli
from aitoonic.content.store import ContentStore, seed


def test_build_static_renders_catalogue(
    tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("AITOONIC_DATABASE", raising=False)
    database = tmp_path / "site.duckdb"
    store = ContentStore(database)
    seed(
        store,
        {
            "categories": [{"id": "c1", "name": "Writing", "description": "Words"}],
            "tools": [
                {
                    "name": "Quill Bot",
                    "description": "Rewrites text",
                    "url": "https://quill.example",
                    "category_id": "c1",
                }
            ],
        },
    )
    store.close()
    output = tmp_path / "out"

    code = cli.main(["--database", str(database), "build-static", "--output", str(output)])

    assert code == 0
    assert (output / "index.html").exists()
    assert (output / "ai" / "quill-bot" / "index.html").exists()
    assert (output / "category" / "writing" / "index.html").exists()


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.main([])
