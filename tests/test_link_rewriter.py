"""
Tests for the cross-file link rewriting pass.
"""

from docusaurus_migrator.link_rewriter import LinkRewriter, ensure_frontmatter_gap, rewrite_links


class TestLinkRewriter:
    def test_whole_segments_only(self):
        rewriter = LinkRewriter({"foo": "bar"})
        assert rewriter.rewrite_target("docs/foobar") == "docs/foobar"
        assert rewriter.rewrite_target("docs/foo") == "docs/bar"
        assert rewriter.rewrite_target("foo.md#x") == "bar#x"
        assert rewriter.rewrite_target("foo/child") == "bar/child"

    def test_longest_key_first(self):
        rewriter = LinkRewriter({"a": "x", "02-guides/a": "guides/b"})
        assert rewriter.rewrite_target("/sdk/v1/02-guides/a") == "/sdk/v1/guides/b"

    def test_skips_external_and_anchors(self):
        rewriter = LinkRewriter({"foo": "bar"})
        assert rewriter.rewrite_target("https://x.io/foo") == "https://x.io/foo"
        assert rewriter.rewrite_target("#foo") == "#foo"
        assert rewriter.rewrite_target("") == ""


class TestRewriteLinks:
    MAPPINGS = {"v1": {"01-a": "a"}, "v2": {"01-b": "b"}}

    def test_markdown_links_outside_code(self):
        content = "[a](01-a.md)\n\n`[b](01-a.md)`\n"
        assert rewrite_links(content, self.MAPPINGS, "sdk", "v1") == ("[a](a)\n\n`[b](01-a.md)`\n", 1)

    def test_cross_version_target_uses_that_mapping(self):
        content, count = rewrite_links("[x](/sdk/v1/01-a)\n", self.MAPPINGS, "sdk", "v2")
        assert content == "[x](/sdk/v1/a)\n"
        assert count == 1

    def test_href_attribute(self):
        content, count = rewrite_links('<Card href="01-a.md#top">Go</Card>\n', self.MAPPINGS, "sdk", "v1")
        assert content == '<Card href="a#top">Go</Card>\n'
        assert count == 1

    def test_unknown_version_has_no_mapping(self):
        content = "[x](01-a.md)\n"
        assert rewrite_links(content, self.MAPPINGS, "sdk", "v3") == (content, 0)


class TestFrontmatterGap:
    def test_inserts_blank_line(self):
        assert ensure_frontmatter_gap('---\ntitle: "x"\n---\nBody\n') == '---\ntitle: "x"\n---\n\nBody\n'

    def test_existing_gap_and_no_frontmatter(self):
        assert ensure_frontmatter_gap('---\ntitle: "x"\n---\n\nBody\n') == '---\ntitle: "x"\n---\n\nBody\n'
        assert ensure_frontmatter_gap("Body\n\n---\nmore\n") == "Body\n\n---\nmore\n"
        assert ensure_frontmatter_gap('---\ntitle: "x"\n---\n') == '---\ntitle: "x"\n---\n'

    def test_horizontal_rule_in_body_not_mistaken(self):
        content = '---\ntitle: "x"\n---\n\nBody\n\n---\n\nMore\n'
        assert ensure_frontmatter_gap(content) == content
