"""Shared utilities for the Docusaurus to Mintlify migrator."""

import hashlib
import os
import posixpath
import re

DOC_EXTENSIONS = ('.md', '.mdx')
IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp')

ORDERING_PREFIX_RE = re.compile(r'^\d+-')
DOC_EXTENSION_RE = re.compile(r'\.mdx?(?=[#?]|$)')
EXTERNAL_LINK_RE = re.compile(r'^(?:[a-zA-Z][a-zA-Z0-9+.-]*:|//)')
VERSION_SEGMENT_RE = re.compile(r'^(?:next|current|v?\d+(?:\.\d+)*(?:\.x)?)$')


def strip_ordering_prefix(segment: str) -> str:
    """Drop a leading sidebar ordering prefix such as ``02-`` from one segment."""
    return ORDERING_PREFIX_RE.sub('', segment)


def strip_ordering_prefixes(path: str) -> str:
    """Strip ordering prefixes from every segment of a posix path."""
    return '/'.join(strip_ordering_prefix(seg) for seg in path.split('/'))


def strip_doc_extension(path: str) -> str:
    """Remove a .md/.mdx extension sitting before a fragment, query or the end."""
    return DOC_EXTENSION_RE.sub('', path)


def is_external_link(href: str) -> bool:
    """Check if a link leaves the docs site (http:, mailto:, protocol-relative...)."""
    return bool(EXTERNAL_LINK_RE.match(href))


def is_version_segment(segment: str) -> bool:
    return bool(VERSION_SEGMENT_RE.match(segment))


def to_posix(path: str) -> str:
    return path.replace(os.sep, '/')


def migrated_doc_path(rel_path: str) -> str:
    """Map a source document path to its output path (no prefixes, .mdx)."""
    clean = strip_ordering_prefixes(to_posix(rel_path))
    root, ext = posixpath.splitext(clean)
    if ext.lower() in DOC_EXTENSIONS:
        return root + '.mdx'
    return clean


def title_from_filename(path: str) -> str:
    """Synthesize a page title from a file name: ``01-getting_started.md`` -> ``Getting Started``."""
    base = posixpath.splitext(posixpath.basename(to_posix(path)))[0]
    base = strip_ordering_prefix(base)
    title = re.sub(r'[-_]+', ' ', base).strip().title()
    title = re.sub(r'\bAdr\b', 'ADR', title)
    return title or 'Untitled'


def label_from_dirname(name: str) -> str:
    """Navigation group label for a directory name."""
    label = re.sub(r'[-_]+', ' ', strip_ordering_prefix(name)).strip()
    return label.title() if label else name


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


def ensure_dir(path: str):
    """Create the parent directory of a file path if it doesn't exist."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def file_digest(path: str) -> str:
    """SHA-256 of a file's bytes."""
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(65536), b''):
            digest.update(chunk)
    return digest.hexdigest()
