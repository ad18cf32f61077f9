"""Tree passes over parsed Docusaurus documents.

``StructuralTransformer.transform`` parses a body into an ``mdtree.Document``
and runs three passes in order:

1. link resolution  - relative doc links become ``/<product>/<version>/...``
2. markup repair    - comments, <details>, placeholder tokens
3. code enrichment  - reference blocks, language sniffing, expandable blocks

Each pass maps every ``NodeKind`` to a handler, so a node kind without one is
a KeyError instead of being skipped. A failure anywhere hands back the
original text as ``Untransformed`` together with an error issue.
"""

import json
import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from bs4 import BeautifulSoup

from . import mdtree
from .issues import MigrationIssue, Severity, issue
from .mdtree import Code, Document, Link, NodeKind, Raw, Text
from .utils import (
    is_external_link,
    is_version_segment,
    strip_doc_extension,
    strip_ordering_prefixes,
    to_posix,
)

logger = logging.getLogger(__name__)

EXPANDABLE_THRESHOLD = 10
LONG_COMMENT_LINES = 10

ASSET_LINK_RE = re.compile(
    r'\.(?:png|jpe?g|gif|svg|webp|ico|pdf|zip|gz|tar|json|ya?ml|toml|txt|csv|proto)$', re.I
)
HASH_COMMENT_LANGS = {'python', 'py', 'bash', 'sh', 'shell', 'zsh', 'yaml', 'yml', 'toml',
                      'ruby', 'rb', 'dockerfile', 'makefile', 'perl'}

COMMENT_RE = re.compile(r'<!--(.*?)-->', re.S)
DETAILS_RE = re.compile(
    r'(?P<open><details\b[^>]*>(?:\s*<summary\b[^>]*>(?P<summary>.*?)</summary>)?)'
    r'|(?P<close></details\s*>)',
    re.I | re.S,
)
SUMMARY_RE = re.compile(r'\s*<summary\b[^>]*>(.*?)</summary>[ \t]*\n?', re.I | re.S)
# Title of an <Expandable> whose <summary> may sit in a later block
PENDING_TITLE = '\0summary\0'
VERSION_MARKER_RE = re.compile(r'\*\*\s*(<=|>=)\s*(v?\d+(?:\.\d+)*(?:\.x)?)\s*\*\*')
GLYPH_RE = re.compile(r'<=>|<->|<-(?!-)|(?<![-<])->')
COMPARISON_RE = re.compile(r'(?<=\s)(<=|>=)(?=\s)')
COMMAND_PLACEHOLDER_RE = re.compile(r'<(appd|simd|gaiad|osmosisd|junod|yourapp)>')
GENERIC_PLACEHOLDER_RE = re.compile(
    r'<((?:host|port|path|user|pass|password|module|version|namespace|service)'
    r'|[a-z][a-z0-9]*(?:[-_][a-z0-9]+)+)>'
)


@dataclass
class Transformed:
    text: str
    issues: list[MigrationIssue] = field(default_factory=list)


@dataclass
class Untransformed:
    """The transform failed; ``text`` is the untouched input."""
    text: str
    issue: MigrationIssue


TransformResult = Union[Transformed, Untransformed]


class StructuralTransformer:
    """Parses a document body and applies the three tree passes."""

    def __init__(self, product: str, fetcher=None):
        self.product = product
        self.fetcher = fetcher
        self.documents_processed = 0

    def transform(self, body: str, source_path: str, version: str) -> TransformResult:
        self.documents_processed += 1
        try:
            document = mdtree.parse(body)
            issues: list[MigrationIssue] = []
            for tree_pass in (
                LinkResolutionPass(self.product, version, source_path),
                MarkupRepairPass(source_path, issues),
                CodeBlockPass(source_path, issues, self.fetcher),
            ):
                tree_pass.run(document)
            return Transformed(mdtree.render(document), issues)
        except Exception as e:
            logger.warning('Structural transform failed for %s: %s', source_path, e)
            return Untransformed(body, issue(
                source_path,
                f'Structural transform failed: {e}',
                'Written without structural conversion; links, comments and code blocks need review',
                severity=Severity.ERROR,
            ))


class TreePass:
    """Visit every node of a document through a per-kind handler table."""

    def handlers(self) -> dict[NodeKind, Callable]:
        raise NotImplementedError

    def run(self, document: Document):
        table = self.handlers()
        for node in list(mdtree.walk(document)):
            table[node.kind](node)
        self.finish(document)

    def finish(self, document: Document):
        pass

    @staticmethod
    def skip(node):
        pass


# ---- Link resolution ----

def resolve_link(url: str, source_path: str, product: str, version: str) -> str:
    """Resolve a doc link from ``source_path`` into the product/version namespace.

    Order matters: resolve relative segments, strip ordering prefixes, strip
    the extension, then namespace.
    """
    if not url or url.startswith('#') or is_external_link(url):
        return url
    match = re.match(r'^([^?#]*)(.*)$', url, re.S)
    path, rest = match.group(1), match.group(2)
    if not path or ASSET_LINK_RE.search(path):
        return url

    if path.startswith('/'):
        resolved = posixpath.normpath(path)
    else:
        source_dir = posixpath.dirname(to_posix(source_path))
        resolved = posixpath.normpath(posixpath.join('/', source_dir, path))

    resolved = strip_ordering_prefixes(resolved)
    resolved = strip_doc_extension(resolved)
    return namespace_path(resolved, product, version) + rest


def namespace_path(path: str, product: str, version: str) -> str:
    """Prefix ``/<product>/<version>``, fixing the version if one is already there."""
    base = f'/{product}/{version}'
    if path in ('/', f'/{product}'):
        return base
    prefix = f'/{product}/'
    if not path.startswith(prefix):
        return base + path
    rest = path[len(prefix):]
    first, sep, tail = rest.partition('/')
    if first == version:
        return path
    if is_version_segment(first):
        return base + (f'/{tail}' if sep else '')
    return f'{base}/{rest}'


class LinkResolutionPass(TreePass):

    def __init__(self, product: str, version: str, source_path: str):
        self.product = product
        self.version = version
        self.source_path = source_path

    def handlers(self):
        return {
            NodeKind.HEADING: self.skip,
            NodeKind.PARAGRAPH: self.skip,
            NodeKind.TABLE: self.skip,
            NodeKind.LINK: self.resolve,
            NodeKind.CODE: self.skip,
            NodeKind.RAW: self.skip,
            NodeKind.TEXT: self.skip,
        }

    def resolve(self, link: Link):
        link.url = resolve_link(link.url, self.source_path, self.product, self.version)


# ---- Markup repair ----

def convert_comment(inner: str) -> str:
    """HTML comment body -> JSX comment, neutralizing nested delimiters."""
    inner = inner.replace('/*', '/ *').replace('*/', '* /')
    return '{/*' + inner + '*/}'


def rewrite_placeholder_tokens(text: str) -> str:
    """Wrap placeholder-ish tokens that MDX would read as tags in inline code."""
    text = VERSION_MARKER_RE.sub(
        lambda m: f'**{m.group(2)} and {"earlier" if m.group(1) == "<=" else "later"}**', text)
    text = GLYPH_RE.sub(lambda m: f'`{m.group(0)}`', text)
    text = COMPARISON_RE.sub(r'`\1`', text)
    text = COMMAND_PLACEHOLDER_RE.sub(r'`\1`', text)
    text = GENERIC_PLACEHOLDER_RE.sub(r'`<\1>`', text)
    return text


def summary_title(summary_html: Optional[str]) -> str:
    if not summary_html:
        return 'Details'
    title = BeautifulSoup(summary_html, 'lxml').get_text(' ', strip=True)
    title = re.sub(r'\s+', ' ', title)
    return title.replace('"', '&quot;') or 'Details'


class MarkupRepairPass(TreePass):
    """HTML comments, <details> disclosures and placeholder tokens."""

    def __init__(self, source_path: str, issues: list[MigrationIssue]):
        self.source_path = source_path
        self.issues = issues
        self.open_disclosures = 0
        self.pending: Optional[Raw] = None

    def handlers(self):
        return {
            NodeKind.HEADING: self.skip,
            NodeKind.PARAGRAPH: self.skip,
            NodeKind.TABLE: self.skip,
            NodeKind.LINK: self.skip,
            NodeKind.CODE: self.skip,
            NodeKind.RAW: self.repair_raw,
            NodeKind.TEXT: self.repair_text,
        }

    def repair_raw(self, node: Raw):
        value = COMMENT_RE.sub(self._replace_comment, node.value)
        if self.pending is not None:
            summary = SUMMARY_RE.match(value)
            self._settle_pending(summary_title(summary.group(1)) if summary else 'Details')
            if summary:
                value = value[summary.end():]
                value = value if value.strip() else ''
        node.value = DETAILS_RE.sub(self._replace_details, value)
        if PENDING_TITLE in node.value:
            self.pending = node

    def repair_text(self, node: Text):
        if not node.value.strip():
            return
        if self.pending is not None:
            self._settle_pending('Details')
        value = COMMENT_RE.sub(self._replace_comment, node.value)
        node.value = rewrite_placeholder_tokens(value)

    def _settle_pending(self, title: str):
        self.pending.value = self.pending.value.replace(PENDING_TITLE, title)
        self.pending = None

    def _replace_comment(self, match) -> str:
        inner = match.group(1)
        line_count = inner.count('\n') + 1
        if line_count > LONG_COMMENT_LINES:
            preview = inner.strip().split('\n')[0][:60]
            self.issues.append(issue(
                self.source_path,
                f'Removed {line_count}-line HTML comment',
                f'Started with: {preview}',
                severity=Severity.INFO,
            ))
            return ''
        return convert_comment(inner)

    def _replace_details(self, match) -> str:
        if match.group('open'):
            self.open_disclosures += 1
            if match.group('summary') is None and not match.string[match.end():].strip():
                return f'<Expandable title="{PENDING_TITLE}">'
            return f'<Expandable title="{summary_title(match.group("summary"))}">'
        if self.open_disclosures:
            self.open_disclosures -= 1
            return '</Expandable>'
        self.issues.append(issue(self.source_path, 'Dropped orphan </details> closing tag',
                                 'Removed the unmatched closing tag'))
        return ''

    def finish(self, document: Document):
        if self.pending is not None:
            self._settle_pending('Details')
        if not self.open_disclosures:
            return
        rendered = document.render()
        lead = '' if not rendered or rendered.endswith('\n') else '\n'
        closers = '\n'.join(['</Expandable>'] * self.open_disclosures)
        document.children.append(Raw(f'{lead}\n{closers}\n'))
        self.issues.append(issue(
            self.source_path,
            f'Unclosed <details> element ({self.open_disclosures})',
            'Synthesized </Expandable> at the end of the document; check where it belongs',
        ))
        self.open_disclosures = 0


# ---- Code block enrichment ----

LANGUAGE_SIGNATURES: list[tuple[str, Callable[[str], bool]]] = [
    ('go', lambda code: any(s in code for s in ('package ', 'func ', 'import "', 'interface{'))),
    ('javascript', lambda code: any(s in code for s in ('const ', 'let ', 'function ', '=> '))),
    ('bash', lambda code: any(s in code for s in ('#!/bin/bash', '#!/bin/sh', 'echo ', 'npm ', 'yarn '))),
    ('python', lambda code: any(s in code for s in ('def ', 'class '))),
    ('json', lambda code: _looks_like_json(code)),
    ('protobuf', lambda code: any(s in code for s in ('message ', 'service ', 'syntax = '))),
]


def _looks_like_json(code: str) -> bool:
    stripped = code.strip()
    if not stripped.startswith(('{', '[')) or '"' not in stripped:
        return False
    try:
        json.loads(stripped)
    except ValueError:
        return False
    return True


def detect_language(code: str) -> Optional[str]:
    for language, matches in LANGUAGE_SIGNATURES:
        if matches(code):
            return language
    return None


def reference_url(code: Code) -> Optional[str]:
    """The URL of a reference block, or None for ordinary code."""
    content = code.value.strip()
    if not content or '\n' in content or not re.match(r'^https?://\S+$', content):
        return None
    if content.startswith('https://github.com/') or 'reference' in code.meta.split():
        return content
    return None


def reference_comment(language: str, url: str) -> str:
    marker = '#' if language.lower() in HASH_COMMENT_LANGS else '//'
    return f'{marker} Reference: {url}'


class CodeBlockPass(TreePass):

    def __init__(self, source_path: str, issues: list[MigrationIssue], fetcher=None):
        self.source_path = source_path
        self.issues = issues
        self.fetcher = fetcher

    def handlers(self):
        return {
            NodeKind.HEADING: self.skip,
            NodeKind.PARAGRAPH: self.skip,
            NodeKind.TABLE: self.skip,
            NodeKind.LINK: self.skip,
            NodeKind.CODE: self.enrich,
            NodeKind.RAW: self.skip,
            NodeKind.TEXT: self.skip,
        }

    def enrich(self, code: Code):
        if code.inline:
            return

        url = reference_url(code)
        if url:
            code.meta = ' '.join(word for word in code.meta.split() if word != 'reference')
            fetched = self.fetcher.fetch(url) if self.fetcher else None
            if fetched is None:
                code.set_content(reference_comment(code.lang, url))
                if self.fetcher:
                    self.issues.append(issue(self.source_path, f'Could not fetch referenced code: {url}',
                                             'Left a reference comment in the code block'))
                return
            code.set_content(fetched)

        if not code.lang:
            detected = detect_language(code.value)
            if detected:
                code.lang = detected

        if len(code.lines) > EXPANDABLE_THRESHOLD and 'expandable' not in code.meta.split():
            # Meta words need a language in front of them
            code.lang = code.lang or 'text'
            code.meta = f'{code.meta} expandable'.strip()
