"""Parse compact git template references: ``owner/name[/subdir][#ref]``."""

from __future__ import annotations

import re

from snaprepo.core.models import SourceDescriptor

DEFAULT_REF = "main"

_INPUT_RE = re.compile(
    r"^(?P<repo>[\w.-]+/[\w.-]+)(?P<subdir>[^#]+)?(?P<ref>#[\w./@-]+)?"
)


def parse_git_uri(raw: str) -> SourceDescriptor:
    """Parse *raw* into a SourceDescriptor. Never raises.

    ``repo`` is None when *raw* does not start with an ``owner/name`` token;
    providers reject that. The default ref is a fixed ``main``, not the
    repository's discovered default branch.

    >>> parse_git_uri("org/repo/foo#v1")
    SourceDescriptor(repo='org/repo', subdir='/foo', ref='v1')
    """
    m = _INPUT_RE.match(raw)
    if not m:
        return SourceDescriptor(repo=None)
    ref = m.group("ref")
    return SourceDescriptor(
        repo=m.group("repo"),
        subdir=m.group("subdir") or "/",
        ref=ref[1:] if ref else DEFAULT_REF,
    )
