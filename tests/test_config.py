"""
Tests for docs.json / versions.json generation.
"""

import json

from docusaurus_migrator.config import (
    build_dropdown,
    product_icon,
    read_json,
    sort_versions,
    update_docs_json,
    update_versions_json,
    write_json,
)
from docusaurus_migrator.navigation import NavGroup, NavPage


def _navigation(version):
    return [
        NavPage(path=f"sdk/{version}/intro", title="Intro"),
        NavGroup(label="Guides", children=[NavPage(path=f"sdk/{version}/guides/start", title="Start")]),
    ]


class TestVersions:
    def test_sort_versions(self):
        assert sort_versions(["v0.47", "next", "v0.50", "v0.9"]) == ["next", "v0.50", "v0.47", "v0.9"]

    def test_sort_without_next(self):
        assert sort_versions(["v7.1", "v10.0", "v8.4"]) == ["v10.0", "v8.4", "v7.1"]

    def test_update_versions_json(self):
        data = update_versions_json({"products": {"ibc": {"versions": ["v8"]}}}, "sdk", ["v0.47", "next"])
        assert data["products"]["sdk"] == {"versions": ["next", "v0.47"], "defaultVersion": "next"}
        assert data["products"]["ibc"] == {"versions": ["v8"]}

    def test_default_version_without_next(self):
        data = update_versions_json({}, "evm", ["v0.3.x", "v0.4.x"])
        assert data["products"]["evm"]["defaultVersion"] == "v0.4.x"


class TestDropdown:
    def test_icons(self):
        assert product_icon("ibc") == "link"
        assert product_icon("SDK") == "gear"
        assert product_icon("unknown") == "book"

    def test_build_dropdown(self):
        dropdown = build_dropdown("sdk", {"v0.47": _navigation("v0.47"), "next": _navigation("next")})
        assert dropdown["dropdown"] == "SDK"
        assert dropdown["icon"] == "gear"
        assert [v["version"] for v in dropdown["versions"]] == ["next", "v0.47"]
        assert dropdown["versions"][0]["tabs"] == [{
            "tab": "Documentation",
            "groups": [
                {"group": "SDK", "pages": ["sdk/next/intro"]},
                {"group": "Guides", "pages": ["sdk/next/guides/start"]},
            ],
        }]

    def test_update_docs_json_replaces_and_keeps_icon(self):
        docs = {"navigation": {"dropdowns": [
            {"dropdown": "IBC", "icon": "link", "versions": []},
            {"dropdown": "sdk", "icon": "star", "versions": []},
        ]}}
        dropdown = build_dropdown("sdk", {"next": _navigation("next")})
        updated = update_docs_json(docs, dropdown)

        dropdowns = updated["navigation"]["dropdowns"]
        assert len(dropdowns) == 2
        assert dropdowns[1]["dropdown"] == "SDK"
        assert dropdowns[1]["icon"] == "star"
        assert dropdowns[1]["versions"] == dropdown["versions"]

    def test_update_docs_json_appends(self):
        updated = update_docs_json({}, build_dropdown("evm", {"next": []}))
        assert [d["dropdown"] for d in updated["navigation"]["dropdowns"]] == ["EVM"]


class TestJsonFiles:
    def test_read_missing_file(self, tmp_path):
        assert read_json(str(tmp_path / "missing.json")) == {}

    def test_write_then_read(self, tmp_path, capsys):
        path = tmp_path / "nested" / "docs.json"
        write_json({"a": [1, 2]}, str(path))

        assert path.read_text(encoding="utf-8").endswith("}\n")
        assert json.loads(path.read_text(encoding="utf-8")) == {"a": [1, 2]}
        assert read_json(str(path)) == {"a": [1, 2]}
        assert "Generated" in capsys.readouterr().out
