"""Run a whole migration: versions, documents, images, cross links, navigation.

A ``MigrationRun`` owns every piece of per-run state (content cache, issue
reporter, path mapping, migrated outputs). Progress goes to stdout in five
steps; diagnostics go to the module logger.
"""

import logging
import os
import posixpath
import re
import shutil
from dataclasses import dataclass, field
from typing import Optional

from .cache import CacheEntry, ContentCache
from .config import build_dropdown, read_json, update_docs_json, update_versions_json, write_json
from .fetcher import ReferenceFetcher
from .frontmatter import DocumentMetadata
from .issues import IssueReporter
from .link_rewriter import rewrite_links
from .markdown_converter import MarkdownConverter
from .navigation import NavNode, NavPage, build_navigation, count_pages, ordering_hint
from .options import ConfigError, MigrationOptions
from .protect import apply_outside_code
from .utils import (
    DOC_EXTENSIONS,
    IMAGE_EXTENSIONS,
    content_hash,
    ensure_dir,
    file_digest,
    is_external_link,
    migrated_doc_path,
    strip_ordering_prefixes,
    to_posix,
)

logger = logging.getLogger(__name__)

SKIP_DIRS = {'node_modules', 'static'}
# Site-level directories that are never a version tree
NON_VERSION_DIRS = SKIP_DIRS | {'src', 'build', 'blog', 'images', 'i18n'}
REPORT_NAME = 'MIGRATION-REPORT.txt'
SNIPPET_NAME = 'navigation-snippet.json'

IMAGE_MD_RE = re.compile(r'(!\[[^\]]*\]\(\s*<?)([^)\s>]+)')
IMAGE_TAG_RE = re.compile(r'(<img\b[^>]*?\bsrc=)(["\'])([^"\']+)\2', re.I)
REQUIRE_SRC_RE = re.compile(r'\{\s*require\(\s*(["\'])([^"\']+)\1\s*\)(?:\.default)?\s*\}')


@dataclass(frozen=True)
class SourceDocument:
    path: str  # relative to the version root, posix separators
    text: str
    version: str
    product: str


@dataclass
class MigratedPage:
    source_path: str
    page_path: str  # migrated path without extension
    version: str
    metadata: DocumentMetadata
    from_cache: bool = False


@dataclass
class MigrationSummary:
    versions: list[str]
    documents: int = 0
    images_copied: int = 0
    links_rewritten: int = 0
    cache_stats: dict = field(default_factory=dict)
    errors: int = 0
    warnings: int = 0
    removals: int = 0
    report_path: Optional[str] = None
    navigation: dict = field(default_factory=dict)


class PathMapping:
    """Per-version record of original -> migrated document paths.

    Keys are original paths without extension (ordering prefixes intact);
    values are the cleaned paths. Base names get their own entry when they
    change, for links written by file name only. Only paths that actually
    change are kept as mapping entries.
    """

    def __init__(self):
        self._mappings: dict[str, dict[str, str]] = {}
        self._targets: dict[str, dict[str, str]] = {}

    def record(self, version: str, rel_path: str) -> Optional[str]:
        """Claim the migrated path for ``rel_path``.

        Returns the source path that already owns the same migrated path, or
        None when the claim succeeds.
        """
        original = posixpath.splitext(rel_path)[0]
        migrated = posixpath.splitext(migrated_doc_path(rel_path))[0]

        targets = self._targets.setdefault(version, {})
        owner = targets.get(migrated)
        if owner is not None and owner != rel_path:
            return owner
        targets[migrated] = rel_path

        mapping = self._mappings.setdefault(version, {})
        if original != migrated:
            mapping[original] = migrated
            base, clean_base = posixpath.basename(original), posixpath.basename(migrated)
            if base != clean_base:
                mapping.setdefault(base, clean_base)
        return None

    def for_version(self, version: str) -> dict[str, str]:
        return dict(self._mappings.get(version, {}))

    def mappings(self) -> dict[str, dict[str, str]]:
        return {version: dict(mapping) for version, mapping in self._mappings.items()}

    def versions(self) -> list[str]:
        return sorted(self._targets)


def discover_versions(source_root: str, version: Optional[str] = None) -> list[tuple[str, str]]:
    """Find (label, directory) pairs for every version tree under ``source_root``.

    A Docusaurus site maps ``versioned_docs/version-X`` to ``vX`` and
    ``docs/`` to ``next``. Otherwise each visible subdirectory is one version.
    An explicit ``version`` treats the root itself as that version.
    """
    if version:
        return [(version.strip(), source_root)]

    found = []
    versioned = os.path.join(source_root, 'versioned_docs')
    if os.path.isdir(versioned):
        for name in sorted(os.listdir(versioned)):
            path = os.path.join(versioned, name)
            if name.startswith('version-') and os.path.isdir(path):
                label = name[len('version-'):]
                found.append((label if label.startswith('v') else f'v{label}', path))
    docs = os.path.join(source_root, 'docs')
    if os.path.isdir(docs):
        found.append(('next', docs))

    if not found:
        for name in sorted(os.listdir(source_root)):
            path = os.path.join(source_root, name)
            if os.path.isdir(path) and not _is_skipped(name) and name not in NON_VERSION_DIRS:
                found.append((name, path))

    return sorted(found)


def _is_skipped(name: str) -> bool:
    return name.startswith(('.', '_'))


def collect_files(root: str) -> tuple[list[str], list[str]]:
    """Walk ``root`` in sorted order; returns (documents, images) as relative posix paths."""
    documents, images = [], []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not _is_skipped(d) and d not in SKIP_DIRS)
        for name in sorted(filenames):
            if _is_skipped(name):
                continue
            rel = to_posix(os.path.relpath(os.path.join(dirpath, name), root))
            ext = os.path.splitext(name)[1].lower()
            if ext in DOC_EXTENSIONS:
                documents.append(rel)
            elif ext in IMAGE_EXTENSIONS:
                images.append(rel)
            else:
                logger.debug('Skipping %s', rel)
    return documents, images


def resolve_asset(src: str, source_path: str, product: str) -> str:
    """Point an image reference at the shared ``/<product>/images/`` folder."""
    if not src or is_external_link(src):
        return src
    path = re.split(r'[?#]', src, maxsplit=1)[0]
    if not path.lower().endswith(IMAGE_EXTENSIONS):
        return src
    if path.startswith('@site/'):
        path = path[len('@site'):]

    if path.startswith(('/img/', '/static/')):
        clean = path[1:]
        if clean.startswith('static/'):
            clean = clean[len('static/'):]
        return f'/{product}/images/static/{clean}'
    if path.startswith('/'):
        return src

    resolved = posixpath.normpath(posixpath.join(posixpath.dirname(source_path), path))
    while resolved.startswith('../'):
        resolved = resolved[3:]
    return f'/{product}/images/{strip_ordering_prefixes(resolved)}'


def rewrite_asset_paths(content: str, source_path: str, product: str) -> str:
    """Rewrite ``![](...)``, ``<img src>`` and ``require(...)`` image references."""
    def fix(src: str) -> str:
        return resolve_asset(src, source_path, product)

    def rewrite(prose: str) -> str:
        prose = IMAGE_MD_RE.sub(lambda m: m.group(1) + fix(m.group(2)), prose)
        prose = IMAGE_TAG_RE.sub(lambda m: f'{m.group(1)}{m.group(2)}{fix(m.group(3))}{m.group(2)}', prose)
        return REQUIRE_SRC_RE.sub(lambda m: f'"{fix(m.group(2))}"', prose)

    return apply_outside_code(content, rewrite)


def rebase_version_links(content: str, product: str, old_version: str, new_version: str) -> str:
    """Move ``/<product>/<old>/...`` links of cached content to the current version."""
    if old_version == new_version:
        return content
    pattern = re.compile(
        '/' + re.escape(product) + '/' + re.escape(old_version) + r'(?=[/#?)"\'\s>]|$)'
    )
    return apply_outside_code(content, lambda prose: pattern.sub(f'/{product}/{new_version}', prose))


class MigrationRun:
    """One migration of a Docusaurus source tree into Mintlify MDX."""

    def __init__(self, options: MigrationOptions, fetcher=None):
        self.options = options
        self.cache = ContentCache()
        self.reporter = IssueReporter()
        self.paths = PathMapping()
        self.converter: Optional[MarkdownConverter] = None
        self.pages: dict[str, list[MigratedPage]] = {}
        self.outputs: dict[tuple[str, str], str] = {}  # (version, output path) -> content
        self.images: dict[str, str] = {}  # path under images/ -> digest
        self._fetcher = fetcher
        self._pending_images: list[tuple[str, str]] = []

    def run(self) -> MigrationSummary:
        options = self.options
        print()
        print("=" * 60)
        print("  Docusaurus → Mintlify Migration Tool")
        print("=" * 60)
        print()

        # Step 1: Validate options (raises ConfigError before anything is written)
        print("[1/5] Validating options...")
        options.validate()
        versions = discover_versions(options.source_root, options.version)
        if not versions:
            raise ConfigError(f'No version directories found in {options.source_root}')
        print(f"  ✓ Product: {options.product}")
        print(f"  ✓ Found {len(versions)} version(s): {', '.join(label for label, _ in versions)}")
        if options.dry_run:
            print("  ⚠ Dry run: nothing will be written")
        elif options.staging:
            print(f"  ✓ Staging mode: writing to {options.output_root}")

        fetcher = self._fetcher
        if fetcher is None and options.fetch_references:
            fetcher = ReferenceFetcher(timeout=options.fetch_timeout)
        self.converter = MarkdownConverter(options.product, fetcher)

        # Step 2: Convert documents
        print()
        print("[2/5] Converting documents...")
        for label, version_dir in versions:
            self.migrate_version(label, version_dir)
        stats = self.cache.stats()
        print(f"  ✓ Cache: {stats['total_files']} files, {stats['unique_content']} unique, "
              f"{stats['cache_hits']} cache hits")

        # Step 3: Images
        print()
        print("[3/5] Copying images...")
        images_copied = self.copy_images()
        print(f"  ✓ Copied {images_copied} images")

        # Step 4: Cross-file links
        print()
        print("[4/5] Rewriting cross-file links...")
        links_rewritten = self.rewrite_cross_links()

        # Step 5: Navigation + report
        print()
        print("[5/5] Building navigation and report...")
        navigation = self.build_navigation()
        if options.update_navigation:
            self.write_navigation(navigation)
        report_path = self.write_report()

        summary = MigrationSummary(
            versions=[label for label, _ in versions],
            documents=len(self.outputs),
            images_copied=images_copied,
            links_rewritten=links_rewritten,
            cache_stats=stats,
            errors=len(self.reporter.errors),
            warnings=len(self.reporter.warnings),
            removals=len(self.reporter.removals),
            report_path=report_path,
            navigation=navigation,
        )
        self._print_summary(summary)
        return summary

    # ---- Step 2 ----

    def migrate_version(self, version: str, version_dir: str):
        documents, images = collect_files(version_dir)
        print(f"  {version}: {len(documents)} documents, {len(images)} images")
        for rel in documents:
            self.migrate_document(version, version_dir, rel)
        for rel in images:
            self._pending_images.append((os.path.join(version_dir, rel), strip_ordering_prefixes(rel)))

    def migrate_document(self, version: str, version_dir: str, rel: str) -> Optional[MigratedPage]:
        reporter = self.reporter
        display = f'{version}/{rel}'
        reporter.set_current_file(display)

        try:
            with open(os.path.join(version_dir, rel), 'r', encoding='utf-8') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning('Could not read %s: %s', display, e)
            reporter.error(None, f'Could not read file: {e}', 'Fix the file and re-run the migration')
            return None

        target = migrated_doc_path(rel)
        owner = self.paths.record(version, rel)
        if owner is not None:
            reporter.error(None, f'Output path {version}/{target} is already used by {owner}',
                           'Rename one of the files so their cleaned paths differ')
            return None

        document = SourceDocument(path=rel, text=text, version=version, product=self.options.product)
        content, entry, from_cache = self._convert(document)
        if reporter.claim(display, content):
            reporter.replay(entry.issues)

        content = rewrite_asset_paths(content, rel, document.product)
        self.outputs[(version, target)] = content
        self._write(version, target, content)

        page = MigratedPage(
            source_path=rel,
            page_path=posixpath.splitext(target)[0],
            version=version,
            metadata=entry.metadata,
            from_cache=from_cache,
        )
        self.pages.setdefault(version, []).append(page)
        return page

    def _convert(self, document: SourceDocument) -> tuple[str, CacheEntry, bool]:
        """Converted content for a document, from the cache when possible."""
        digest = content_hash(document.text)
        entry = self.cache.lookup(digest)
        if entry is not None:
            logger.debug('Cache hit for %s/%s (from %s)', document.version, document.path, entry.version)
            content = rebase_version_links(entry.content, document.product, entry.version, document.version)
            return content, entry, True

        result = self.converter.convert(document.text, document.path, document.version)
        entry = CacheEntry(
            content=result.content,
            metadata=result.metadata,
            issues=tuple(result.issues),
            version=document.version,
        )
        self.cache.store(digest, entry)
        return entry.content, entry, False

    def _write(self, version: str, target: str, content: str):
        if self.options.dry_run:
            return
        output_file = os.path.join(self.options.output_root, version, target)
        ensure_dir(output_file)
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(content)

    # ---- Step 3 ----

    def copy_images(self) -> int:
        """Copy version images and Docusaurus ``static/`` into the shared images folder."""
        copied = 0
        for source, rel in self._pending_images:
            copied += self._copy_image(source, rel)

        static_dir = os.path.join(self.options.source_root, 'static')
        if os.path.isdir(static_dir):
            for rel in collect_files(static_dir)[1]:
                copied += self._copy_image(os.path.join(static_dir, rel), f'static/{rel}')
        return copied

    def _copy_image(self, source: str, rel: str) -> bool:
        digest = file_digest(source)
        known = self.images.get(rel)
        if known is not None:
            if known != digest:
                self.reporter.set_current_file(f'images/{rel}')
                self.reporter.warning(None, 'Image differs between versions; kept the first copy',
                                      f'Skipped {to_posix(source)}')
            return False

        self.images[rel] = digest
        if self.options.dry_run:
            return True
        target = os.path.join(self.options.output_root, 'images', rel)
        try:
            ensure_dir(target)
            shutil.copy2(source, target)
        except OSError as e:
            print(f"  ⚠ Failed to copy {rel}: {e}")
            self.reporter.set_current_file(f'images/{rel}')
            self.reporter.error(None, f'Failed to copy image: {e}', 'Copy the image manually')
            return False
        return True

    # ---- Step 4 ----

    def rewrite_cross_links(self) -> int:
        mappings = self.paths.mappings()
        product = self.options.product
        total = 0
        files_changed = 0
        for (version, target), content in list(self.outputs.items()):
            rewritten, count = rewrite_links(content, mappings, product, version)
            total += count
            if rewritten != content:
                self.outputs[(version, target)] = rewritten
                self._write(version, target, rewritten)
                files_changed += 1
        print(f"  ✓ Rewrote {total} links in {files_changed} files")
        return total

    # ---- Step 5 ----

    def build_navigation(self) -> dict[str, list[NavNode]]:
        product = self.options.product
        navigation = {}
        for version, pages in sorted(self.pages.items()):
            nav_pages = [
                NavPage(
                    path=page.page_path,
                    title=page.metadata.sidebar_title or page.metadata.title,
                    position=ordering_hint(page.metadata.position, page.source_path),
                    source_path=page.source_path,
                    hidden=page.metadata.hidden,
                )
                for page in pages
            ]
            navigation[version] = build_navigation(nav_pages, product, version)
            hidden = sum(1 for page in nav_pages if page.hidden)
            line = f"  ✓ {version}: {count_pages(navigation[version])} pages in navigation"
            if hidden:
                line += f" ({hidden} hidden)"
            print(line)
        return navigation

    def write_navigation(self, navigation: dict[str, list[NavNode]]):
        options = self.options
        dropdown = build_dropdown(options.product, navigation)
        if options.dry_run:
            print("  ⚠ Dry run: navigation not written")
            return

        write_json(dropdown, os.path.join(options.output_root, SNIPPET_NAME))
        if options.docs_json:
            write_json(update_docs_json(read_json(options.docs_json), dropdown), options.docs_json)
            versions_path = os.path.join(os.path.dirname(options.docs_json), 'versions.json')
            versions_json = update_versions_json(read_json(versions_path), options.product, navigation)
            write_json(versions_json, versions_path)

    def write_report(self) -> Optional[str]:
        reporter = self.reporter
        if self.options.dry_run:
            print(f"  ⚠ Dry run: {len(reporter.errors)} errors, {len(reporter.warnings)} warnings, "
                  f"{len(reporter.removals)} removals (report not written)")
            return None

        report = reporter.generate_report() or 'MIGRATION REPORT\n\nNo issues found.\n'
        report_path = os.path.join(self.options.output_root, REPORT_NAME)
        ensure_dir(report_path)
        with open(report_path, 'w', encoding='utf-8') as f:
            f.write(report)
        print(f"  ✓ Generated {report_path}")
        return report_path

    def _print_summary(self, summary: MigrationSummary):
        print()
        print("=" * 60)
        print("  Migration Complete!" if not self.options.dry_run else "  Dry Run Complete!")
        print("=" * 60)
        print()
        print(f"  Output directory: {os.path.abspath(self.options.output_root)}")
        print(f"  Versions:         {', '.join(summary.versions)}")
        print(f"  Documents:        {summary.documents}")
        print(f"  Images copied:    {summary.images_copied}")
        print(f"  Links rewritten:  {summary.links_rewritten}")
        print(f"  Issues:           {summary.errors} errors, {summary.warnings} warnings, "
              f"{summary.removals} removals")
        print()
        print("  Next steps:")
        print(f"  1. Review {REPORT_NAME} for items needing manual attention")
        print("  2. Run `mintlify dev` to preview the site locally")
        print("  3. Verify the navigation dropdown in docs.json")
        print()
