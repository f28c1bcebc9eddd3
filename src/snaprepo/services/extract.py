"""Stream-extract a gzip tarball, stripping the archive's top-level folder.

Hosting providers wrap every entry in one folder named after the revision
(``repo-main/...``). That segment is always removed; when a subdir is
requested, only entries below it are written, re-rooted at the destination.
"""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path, PurePosixPath

from snaprepo.core.errors import ExtractionError

logger = logging.getLogger(__name__)


def rewrite_path(name: str, subdir: str = "") -> str:
    """Map an archive entry name to its destination-relative path.

    An empty result means "do not write".

    >>> rewrite_path("repo-main/src/app.py", "src")
    'app.py'
    >>> rewrite_path("repo-main/README.md", "src")
    ''
    """
    path = "/".join(name.split("/")[1:])
    subdir = subdir.strip("/")
    if subdir:
        if path.startswith(subdir + "/"):
            path = path[len(subdir) + 1:]
        else:
            path = ""
    return path.strip("/")


def is_safe_path(path: str) -> bool:
    """Reject absolute paths and any parent-directory segment."""
    pure = PurePosixPath(path)
    return not pure.is_absolute() and ".." not in pure.parts and "\\" not in path


def extract_tarball(tar_path: Path, dest: Path, *, subdir: str = "") -> int:
    """Extract *tar_path* into *dest*. Returns the number of entries written."""
    written = 0
    try:
        with tarfile.open(tar_path, "r|gz") as tar:
            for member in tar:
                target = _rewrite_member(member, subdir)
                if target is None:
                    continue
                try:
                    tar.extract(target, dest, filter="data")
                except tarfile.FilterError as exc:
                    logger.warning("Skipping unsafe archive entry %s: %s", member.name, exc)
                    continue
                written += 1
    except (tarfile.TarError, OSError) as exc:
        raise ExtractionError(f"Failed to extract {tar_path}: {exc}", path=tar_path) from exc
    return written


def _rewrite_member(member: tarfile.TarInfo, subdir: str) -> tarfile.TarInfo | None:
    path = rewrite_path(member.name, subdir)
    if not path:
        logger.debug("Skipping %s", member.name)
        return None
    if not is_safe_path(path):
        logger.warning("Skipping unsafe archive entry %s", member.name)
        return None

    changes: dict = {"name": path}
    if member.islnk():
        # Hard link targets carry the same top-level prefix as entry names.
        link = rewrite_path(member.linkname, subdir)
        if not link or not is_safe_path(link):
            logger.warning("Skipping hard link %s -> %s", member.name, member.linkname)
            return None
        changes["linkname"] = link
    return member.replace(**changes, deep=False)
