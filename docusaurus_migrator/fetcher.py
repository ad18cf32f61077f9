"""Fetch source files referenced by Docusaurus ``reference`` code blocks."""

import logging
import re
from typing import Optional

import requests

logger = logging.getLogger(__name__)

GITHUB_BLOB_RE = re.compile(r'^https://github\.com/([^/]+)/([^/]+)/blob/(.+?)(?:#(.*))?$')
LINE_RANGE_RE = re.compile(r'^L(\d+)(?:-L(\d+))?$')


def create_session() -> requests.Session:
    """Create an HTTP session with appropriate headers."""
    session = requests.Session()
    session.headers.update({
        'User-Agent': 'Mozilla/5.0 (Mintlify Migration Tool) AppleWebKit/537.36',
        'Accept': 'text/plain,*/*;q=0.8',
    })
    return session


def to_raw_url(url: str) -> tuple[str, Optional[tuple[int, Optional[int]]]]:
    """GitHub blob URL -> (raw.githubusercontent.com URL, optional line range)."""
    match = GITHUB_BLOB_RE.match(url)
    if not match:
        return url, None
    owner, repo, rest, fragment = match.groups()
    raw = f'https://raw.githubusercontent.com/{owner}/{repo}/{rest}'
    line_range = None
    range_match = LINE_RANGE_RE.match(fragment or '')
    if range_match:
        start = int(range_match.group(1))
        end = int(range_match.group(2)) if range_match.group(2) else None
        line_range = (start, end)
    return raw, line_range


def slice_lines(text: str, line_range: Optional[tuple[int, Optional[int]]]) -> str:
    if not line_range:
        return text
    start, end = line_range
    lines = text.split('\n')
    end = start if end is None else end
    return '\n'.join(lines[start - 1:end])


class ReferenceFetcher:
    """Downloads referenced code, remembering each URL's result for the run.

    ``fetch`` returns None on any request failure; callers fall back to a
    reference comment.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.session = session or create_session()
        self.timeout = timeout
        self._results: dict[str, Optional[str]] = {}

    def fetch(self, url: str) -> Optional[str]:
        if url in self._results:
            return self._results[url]

        raw_url, line_range = to_raw_url(url)
        try:
            resp = self.session.get(raw_url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning('Failed to fetch %s: %s', raw_url, e)
            self._results[url] = None
            return None

        text = slice_lines(resp.text, line_range).strip('\n')
        self._results[url] = text
        logger.debug('Fetched %s (%d lines)', raw_url, text.count('\n') + 1)
        return text
