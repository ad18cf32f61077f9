"""
End-to-end tests for a migration run over small Docusaurus trees.
"""

import json

import pytest

from docusaurus_migrator.options import ConfigError, MigrationOptions
from docusaurus_migrator.orchestrator import (
    PathMapping,
    MigrationRun,
    collect_files,
    discover_versions,
    rebase_version_links,
    resolve_asset,
    rewrite_asset_paths,
)


def _run(source, output, **kwargs):
    kwargs.setdefault("product", "sdk")
    kwargs.setdefault("fetch_references", False)
    run = MigrationRun(MigrationOptions(source_root=str(source), output_dir=str(output), **kwargs))
    summary = run.run()
    return run, summary


def _read(path):
    return path.read_text(encoding="utf-8")


class TestDiscovery:
    def test_docusaurus_layout(self, docusaurus_site):
        versions = discover_versions(str(docusaurus_site))
        assert [label for label, _ in versions] == ["next", "v0.47"]

    def test_version_folders(self, tmp_path, write_tree):
        root = write_tree(tmp_path / "src", {
            "v1/a.md": "A\n",
            "v2/a.md": "A\n",
            "static/logo.png": b"png",
            ".git/config": "x",
        })
        assert [label for label, _ in discover_versions(str(root))] == ["v1", "v2"]

    def test_explicit_version(self, tmp_path):
        assert discover_versions(str(tmp_path), "v0.4.x") == [("v0.4.x", str(tmp_path))]

    def test_collect_files_skips_hidden_and_vendor(self, tmp_path, write_tree):
        root = write_tree(tmp_path / "docs", {
            "a.md": "A\n",
            "_partial.md": "P\n",
            "node_modules/x.md": "X\n",
            "build/b.mdx": "B\n",
            "build/pic.PNG": b"png",
            "notes.txt": "n\n",
        })
        assert collect_files(str(root)) == (["a.md", "build/b.mdx"], ["build/pic.PNG"])


class TestPathMapping:
    def test_records_changed_paths_and_base_names(self):
        paths = PathMapping()
        assert paths.record("v1", "02-guides/01-start.md") is None
        assert paths.record("v1", "plain.md") is None
        assert paths.for_version("v1") == {"02-guides/01-start": "guides/start", "01-start": "start"}

    def test_collision_returns_owner(self):
        paths = PathMapping()
        assert paths.record("v1", "01-a.md") is None
        assert paths.record("v1", "a.md") == "01-a.md"
        assert paths.record("v2", "a.md") is None


class TestAssets:
    @pytest.mark.parametrize("src,expected", [
        ("./diagram.png", "/sdk/images/guides/diagram.png"),
        ("../img/flow.svg", "/sdk/images/img/flow.svg"),
        ("../../../up.png", "/sdk/images/up.png"),
        ("/img/logo.png", "/sdk/images/static/img/logo.png"),
        ("@site/static/img/logo.png", "/sdk/images/static/img/logo.png"),
        ("/assets/x.png", "/assets/x.png"),
        ("https://cdn.io/x.png", "https://cdn.io/x.png"),
        ("./file.pdf", "./file.pdf"),
    ])
    def test_resolve_asset(self, src, expected):
        assert resolve_asset(src, "02-guides/02-config.md", "sdk") == expected

    def test_rewrite_asset_forms(self):
        content = (
            '![a](./a.png)\n'
            '<img src="./b.png" />\n'
            "<img src={require('./c.png').default} />\n"
            '`![d](./d.png)`\n'
        )
        assert rewrite_asset_paths(content, "guides/x.md", "sdk") == (
            '![a](/sdk/images/guides/a.png)\n'
            '<img src="/sdk/images/guides/b.png" />\n'
            '<img src="/sdk/images/guides/c.png" />\n'
            '`![d](./d.png)`\n'
        )

    def test_rebase_version_links(self):
        content = "[a](/sdk/next/x) [b](/sdk/nextgen/y)\n`/sdk/next/z`\n"
        assert rebase_version_links(content, "sdk", "next", "v0.47") == \
            "[a](/sdk/v0.47/x) [b](/sdk/nextgen/y)\n`/sdk/next/z`\n"


class TestMigrationRun:
    def test_full_site(self, docusaurus_site, output_dir):
        run, summary = _run(docusaurus_site, output_dir)

        for rel in ("next/intro.mdx", "next/guides/start.mdx", "next/guides/config.mdx",
                    "v0.47/intro.mdx", "v0.47/guides/start.mdx"):
            assert (output_dir / rel).is_file(), rel

        intro = _read(output_dir / "next" / "intro.mdx")
        assert intro.startswith('---\ntitle: "Introduction"\n')
        assert "](/sdk/next/guides/start)" in intro
        assert "](/sdk/next/guides/config#options)" in intro
        assert _read(output_dir / "v0.47" / "intro.mdx") == intro.replace("/sdk/next/", "/sdk/v0.47/")

        assert "](/sdk/next/intro)" in _read(output_dir / "next" / "guides" / "start.mdx")
        assert '<img src="/sdk/images/static/img/logo.png"' in _read(output_dir / "next" / "guides" / "start.mdx")
        config = _read(output_dir / "next" / "guides" / "config.mdx")
        assert 'sidebarTitle: "Config"' in config
        assert "<Note>" in config
        assert "](/sdk/images/guides/diagram.png)" in config

        assert (output_dir / "images" / "guides" / "diagram.png").read_bytes() == b"\x89PNG diagram"
        assert (output_dir / "images" / "static" / "img" / "logo.png").is_file()
        assert summary.images_copied == 2

        assert summary.cache_stats == {"total_files": 5, "unique_content": 3, "cache_hits": 2}
        assert run.converter.documents_processed == 3
        assert summary.versions == ["next", "v0.47"]
        assert summary.documents == 5
        assert summary.report_path == str(output_dir / "MIGRATION-REPORT.txt")
        assert (output_dir / "MIGRATION-REPORT.txt").is_file()
        assert not (output_dir / "navigation-snippet.json").exists()

    def test_navigation_per_version(self, docusaurus_site, output_dir):
        _, summary = _run(docusaurus_site, output_dir)
        nodes = summary.navigation["next"]
        assert nodes[0].path == "sdk/next/intro"
        assert nodes[1].label == "Guides"
        assert [p.path for p in nodes[1].children] == ["sdk/next/guides/start", "sdk/next/guides/config"]

    def test_update_navigation(self, docusaurus_site, output_dir, tmp_path):
        docs_json = tmp_path / "docs.json"
        docs_json.write_text(json.dumps(
            {"navigation": {"dropdowns": [{"dropdown": "SDK", "icon": "star", "versions": []}]}}
        ), encoding="utf-8")

        _run(docusaurus_site, output_dir, update_navigation=True, docs_json=str(docs_json))

        dropdown = json.loads(_read(docs_json))["navigation"]["dropdowns"][0]
        assert dropdown["icon"] == "star"
        assert [v["version"] for v in dropdown["versions"]] == ["next", "v0.47"]
        assert dropdown["versions"][0]["tabs"][0]["groups"] == [
            {"group": "SDK", "pages": ["sdk/next/intro"]},
            {"group": "Guides", "pages": ["sdk/next/guides/start", "sdk/next/guides/config"]},
        ]
        versions = json.loads(_read(tmp_path / "versions.json"))
        assert versions["products"]["sdk"] == {"versions": ["next", "v0.47"], "defaultVersion": "next"}
        assert (output_dir / "navigation-snippet.json").is_file()

    def test_problem_document_still_written(self, tmp_path, write_tree, output_dir):
        source = write_tree(tmp_path / "src", {
            "v1/broken.md": "# Broken\n\n<details>\n<summary>More</summary>\n\nHidden text here.\n",
        })
        run, summary = _run(source, output_dir)

        assert "</Expandable>" in _read(output_dir / "v1" / "broken.mdx")
        messages = [i.message for i in run.reporter.issues_for("v1/broken.md")]
        assert any(m.startswith("Unclosed <details>") for m in messages)
        assert "File: v1/broken.md" in _read(output_dir / "MIGRATION-REPORT.txt")

    def test_infinite_position_does_not_stop_run(self, tmp_path, write_tree, output_dir):
        source = write_tree(tmp_path / "src", {
            "v1/a.md": "---\nsidebar_position: .inf\n---\n# A\n\nFirst page body text.\n",
            "v1/b.md": "# B\n\nSecond page body text.\n",
        })
        run, summary = _run(source, output_dir)

        assert [p.path for p in summary.navigation["v1"]] == ["sdk/v1/a", "sdk/v1/b"]
        assert (output_dir / "MIGRATION-REPORT.txt").is_file()
        messages = [i.message for i in run.reporter.issues_for("v1/a.md")]
        assert any(m.startswith("Ignored non-numeric sidebar_position") for m in messages)

    def test_path_conflict_reported(self, tmp_path, write_tree, output_dir):
        source = write_tree(tmp_path / "src", {
            "v1/01-a.md": "# A\n\nFirst page body text.\n",
            "v1/a.md": "# A again\n\nSecond page body text.\n",
        })
        run, summary = _run(source, output_dir)

        assert summary.documents == 1
        assert _read(output_dir / "v1" / "a.mdx").startswith('---\ntitle: "A"\n')
        errors = run.reporter.issues_for("v1/a.md")
        assert len(errors) == 1 and "already used" in errors[0].message

    def test_cross_links_rewritten(self, tmp_path, write_tree, output_dir):
        source = write_tree(tmp_path / "src", {
            "v1/01-a.md": '# A\n\n<Card title="B" href="02-b">Next</Card>\n',
            "v1/02-b.md": "# B\n\nBody of page b.\n",
        })
        _, summary = _run(source, output_dir)
        assert '<Card title="B" href="b">' in _read(output_dir / "v1" / "a.mdx")
        assert summary.links_rewritten == 1

    def test_differing_images_warn(self, tmp_path, write_tree, output_dir):
        source = write_tree(tmp_path / "src", {
            "v1/pic.png": b"one",
            "v2/pic.png": b"two",
        })
        run, summary = _run(source, output_dir)
        assert summary.images_copied == 1
        assert (output_dir / "images" / "pic.png").read_bytes() == b"one"
        assert [i.message for i in run.reporter.warnings] == [
            "Image differs between versions; kept the first copy",
        ]

    def test_dry_run_writes_nothing(self, docusaurus_site, output_dir):
        run, summary = _run(docusaurus_site, output_dir, dry_run=True, update_navigation=True)
        assert not output_dir.exists()
        assert len(run.outputs) == 5
        assert summary.images_copied == 2
        assert summary.report_path is None

    def test_staging_mode(self, docusaurus_site, output_dir, tmp_path):
        staging = tmp_path / "staging"
        _run(docusaurus_site, output_dir, staging=True, staging_dir=str(staging))
        assert (staging / "next" / "intro.mdx").is_file()
        assert not output_dir.exists()

    def test_blank_product_fails_before_writing(self, docusaurus_site, output_dir):
        with pytest.raises(ConfigError):
            _run(docusaurus_site, output_dir, product="  ")
        assert not output_dir.exists()

    def test_no_versions_found(self, tmp_path, output_dir):
        empty = tmp_path / "empty"
        empty.mkdir()
        with pytest.raises(ConfigError, match="No version directories"):
            _run(empty, output_dir)
