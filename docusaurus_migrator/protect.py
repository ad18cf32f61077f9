"""Keep code out of reach of text-level rewrites.

Fenced code blocks and inline code spans are swapped for opaque placeholder
tokens before a rewrite runs and swapped back afterwards, so regex repairs can
be written without worrying about mangling code samples.
"""

import hashlib
import re
from typing import Callable, Iterator

FENCE_OPEN_RE = re.compile(r'^([ \t]*)(`{3,}|~{3,})(.*)$')
INLINE_CODE_RE = re.compile(r'(?<!`)(`+)(?!`)(.+?)(?<!`)\1(?!`)')


def fence_open(line: str):
    """Return (indent, fence, info) if the line opens a fenced block, else None."""
    match = FENCE_OPEN_RE.match(line.rstrip('\r\n'))
    if not match:
        return None
    indent, fence, info = match.groups()
    # A backtick fence cannot carry backticks in its info string (it's inline code then)
    if fence[0] == '`' and '`' in info:
        return None
    return indent, fence, info


def is_fence_close(line: str, fence: str) -> bool:
    stripped = line.strip()
    return (
        len(stripped) >= len(fence)
        and set(stripped) == {fence[0]}
    )


def fenced_block_spans(lines: list[str]) -> list[tuple[int, int]]:
    """Line index spans (start, end inclusive) of fenced code blocks.

    An unclosed fence runs to the last line.
    """
    spans = []
    i = 0
    while i < len(lines):
        opened = fence_open(lines[i])
        if not opened:
            i += 1
            continue
        fence = opened[1]
        j = i + 1
        while j < len(lines) and not is_fence_close(lines[j], fence):
            j += 1
        end = min(j, len(lines) - 1)
        spans.append((i, end))
        i = end + 1
    return spans


def apply_outside_code(text: str, transform: Callable[[str], str]) -> str:
    """Run ``transform`` over ``text`` with all code replaced by placeholders."""
    nonce = hashlib.sha1(text.encode('utf-8')).hexdigest()[:8]
    saved: list[tuple[str, str]] = []

    def stash(kind: str, value: str) -> str:
        token = f'__CODE_{kind}_{nonce}_{len(saved)}__'
        saved.append((token, value))
        return token

    lines = text.splitlines(keepends=True)
    spans = fenced_block_spans(lines)
    if spans:
        masked = []
        cursor = 0
        for start, end in spans:
            masked.extend(lines[cursor:start])
            block = ''.join(lines[start:end + 1])
            body = block.rstrip('\r\n')
            masked.append(stash('BLOCK', body) + block[len(body):])
            cursor = end + 1
        masked.extend(lines[cursor:])
        text = ''.join(masked)

    text = INLINE_CODE_RE.sub(lambda m: stash('INLINE', m.group(0)), text)

    result = transform(text)
    return _restore(result, saved)


def _restore(text: str, saved: list[tuple[str, str]]) -> str:
    for token, value in reversed(saved):
        if token in text:
            text = text.replace(token, value)
            continue
        # The transform may have escaped underscores inside the token
        pattern = re.compile(re.escape(token).replace('_', r'\\?_'))
        text = pattern.sub(lambda m: value, text)
    return text


def iter_prose_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (1-based line number, line) outside fenced blocks.

    Inline code spans are blanked out with spaces so columns stay put.
    """
    lines = text.split('\n')
    in_code = set()
    for start, end in fenced_block_spans(lines):
        in_code.update(range(start, end + 1))
    for index, line in enumerate(lines):
        if index in in_code:
            continue
        yield index + 1, INLINE_CODE_RE.sub(lambda m: ' ' * len(m.group(0)), line)
