"""Second-pass link correction across all migrated documents.

Runs after every version has been written, once the path mapping is
complete, and rewrites link targets that still name a source file by its
pre-migration name.
"""

import re

from .protect import apply_outside_code
from .utils import is_external_link

MD_LINK_RE = re.compile(r'(\]\(\s*<?)([^)\s>]+)')
ATTR_LINK_RE = re.compile(r'(\b(?:href|to)=)(["\'])([^"\'\n]*)\2')
FRONTMATTER_BLOCK_RE = re.compile(r'\A---\n.*?\n---\n', re.S)


class LinkRewriter:
    """Rewrites link targets through one version's path mapping.

    Keys match whole path segments only, so a mapping for ``foo`` leaves
    ``foobar`` alone. Longer keys are tried first.
    """

    def __init__(self, mapping: dict[str, str]):
        self._patterns = [
            (re.compile(r'(^|/)' + re.escape(original) + r'(?:\.mdx?)?(?=[/#?]|$)'), migrated)
            for original, migrated in sorted(mapping.items(), key=lambda kv: len(kv[0]), reverse=True)
        ]

    def rewrite_target(self, target: str) -> str:
        if not target or target.startswith('#') or is_external_link(target):
            return target
        for pattern, migrated in self._patterns:
            rewritten, count = pattern.subn(lambda m: m.group(1) + migrated, target, count=1)
            if count:
                return rewritten
        return target


def rewrite_links(content: str, mappings: dict[str, dict[str, str]], product: str,
                  version: str) -> tuple[str, int]:
    """Rewrite markdown links and href/to attributes in one migrated document.

    ``mappings`` is version -> {original path: migrated path}. A target that
    points into another version (``/<product>/<v>/...``) uses that version's
    mapping. Returns (content, number of targets rewritten).
    """
    rewriters = {}
    rewritten = 0

    def rewriter_for(target: str) -> LinkRewriter:
        target_version = version
        prefix = f'/{product}/'
        if target.startswith(prefix):
            candidate = target[len(prefix):].split('/', 1)[0]
            if candidate in mappings:
                target_version = candidate
        if target_version not in rewriters:
            rewriters[target_version] = LinkRewriter(mappings.get(target_version, {}))
        return rewriters[target_version]

    def fix(target: str) -> str:
        nonlocal rewritten
        new_target = rewriter_for(target).rewrite_target(target)
        if new_target != target:
            rewritten += 1
        return new_target

    def rewrite(prose: str) -> str:
        prose = MD_LINK_RE.sub(lambda m: m.group(1) + fix(m.group(2)), prose)
        return ATTR_LINK_RE.sub(lambda m: f'{m.group(1)}{m.group(2)}{fix(m.group(3))}{m.group(2)}', prose)

    content = apply_outside_code(content, rewrite)
    return ensure_frontmatter_gap(content), rewritten


def ensure_frontmatter_gap(content: str) -> str:
    """Put a blank line between the frontmatter block and the body."""
    match = FRONTMATTER_BLOCK_RE.match(content)
    if not match or match.end() == len(content) or content[match.end()] == '\n':
        return content
    return content[:match.end()] + '\n' + content[match.end():]
