"""Build a nested navigation tree from the flat list of migrated pages."""

import math
import posixpath
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from .utils import ORDERING_PREFIX_RE, label_from_dirname


@dataclass
class NavPage:
    """A migrated page as navigation sees it."""
    path: str  # Migrated path, no extension (e.g. 'guides/start')
    title: str
    position: Optional[float] = None  # ordering hint
    source_path: str = ''  # original relative path, ordering prefixes intact
    hidden: bool = False
    resolved_position: int = 0


@dataclass
class NavGroup:
    """A directory of pages."""
    label: str
    children: list = field(default_factory=list)  # NavPage or NavGroup


NavNode = Union[NavPage, NavGroup]


@dataclass
class _Directory:
    name: str
    pages: list = field(default_factory=list)
    subdirs: dict = field(default_factory=dict)


def ordering_hint(position: Optional[float], source_path: str) -> Optional[float]:
    """``sidebar_position`` if set, else the number prefix of the file name."""
    if position is not None:
        return position
    return _prefix_number(posixpath.basename(source_path))


def _prefix_number(name: str) -> Optional[int]:
    match = ORDERING_PREFIX_RE.match(name)
    return int(match.group(0)[:-1]) if match else None


def resolve_positions(pages: list[NavPage]) -> list[NavPage]:
    """Order one directory's pages and give each a unique integer position.

    Pages sort by hint (pages without one go last), then path. Each position
    is the hint rounded up, bumped to ``previous + 1`` when it would collide.
    """
    ordered = sorted(pages, key=lambda p: (p.position is None, p.position or 0, p.path))
    last = None
    for page in ordered:
        if page.position is None:
            position = 1 if last is None else last + 1
        else:
            position = math.ceil(page.position)
            if last is not None and position <= last:
                position = last + 1
        page.resolved_position = position
        last = position
    return ordered


def build_navigation(pages: list[NavPage], product: str, version: str) -> list[NavNode]:
    """Group pages by source directory into a tree of NavGroup/NavPage.

    Page paths in the result are full references (``<product>/<version>/<path>``).
    Hidden pages are left out.
    """
    root = _Directory('')
    for page in pages:
        if page.hidden:
            continue
        source = page.source_path or page.path
        directory = posixpath.dirname(source)
        node = root
        if directory:
            for part in directory.split('/'):
                node = node.subdirs.setdefault(part, _Directory(part))
        node.pages.append(page)

    nodes, _ = _build_level(root, f'{product}/{version}')
    return nodes


def _build_level(directory: _Directory, prefix: str) -> tuple[list[NavNode], Optional[float]]:
    """Returns the nodes for one directory and the lowest hint found under it."""
    leaves = [replace(page, path=f'{prefix}/{page.path}') for page in resolve_positions(directory.pages)]
    hints = [page.position for page in directory.pages if page.position is not None]

    groups = []
    for name, subdir in directory.subdirs.items():
        children, lowest = _build_level(subdir, prefix)
        if not children:
            continue
        if lowest is not None:
            hints.append(lowest)
        groups.append((lowest, _prefix_number(name), label_from_dirname(name), children))

    # Groups follow the leaves: lowest contained hint, then dir number, then label
    groups.sort(key=lambda g: (g[0] is None, g[0] or 0, g[1] is None, g[1] or 0, g[2]))
    nodes: list[NavNode] = list(leaves)
    nodes.extend(NavGroup(label=label, children=children) for _, _, label, children in groups)
    return nodes, (min(hints) if hints else None)


def nav_to_config(nodes: list[NavNode]) -> list:
    """Convert a navigation tree into docs.json ``pages`` entries."""
    pages = []
    for node in nodes:
        if isinstance(node, NavPage):
            pages.append(node.path)
        elif isinstance(node, NavGroup):
            sub = {
                "group": node.label,
                "pages": nav_to_config(node.children),
            }
            if sub["pages"]:
                pages.append(sub)
    return pages


def count_pages(nodes: list[NavNode]) -> int:
    total = 0
    for node in nodes:
        if isinstance(node, NavGroup):
            total += count_pages(node.children)
        else:
            total += 1
    return total
