"""Content hasher: deterministic SHA-256 digest of a package's own files.

The package digest is computed as follows:

1. Every regular file under the package directory is listed, skipping any
   ``node_modules`` subdirectory and never following symlinks.
2. Each file is hashed with SHA-256 and recorded as
   ``"<relative posix path>:<hex digest>"``.
3. The entries are sorted, joined with ``"\\n"`` and hashed again.

Files or directories that cannot be read are left out rather than failing
the package, so the digest is best-effort: it fingerprints what was
readable and is not an integrity guarantee.
"""

from __future__ import annotations

import asyncio
import hashlib
import os
from pathlib import Path, PurePath

import structlog

from pkgaudit.core.config import env_int

log = structlog.get_logger("pkgaudit.engine")

NESTED_DEPENDENCY_DIR = "node_modules"
DEFAULT_CONCURRENCY = env_int("PKGAUDIT_HASH_CONCURRENCY", 16, minimum=1)
DEFAULT_MAX_DEPTH = 256
_CHUNK_SIZE = 64 * 1024


def collect_files(package_dir: Path, max_depth: int = DEFAULT_MAX_DEPTH) -> list[Path]:
    """List regular files under *package_dir*, excluding nested dependency dirs.

    Unreadable directories are skipped. Directories nested deeper than
    *max_depth* below *package_dir* are not descended into.
    """
    files: list[Path] = []
    stack: list[tuple[Path, int]] = [(package_dir, 0)]
    while stack:
        directory, depth = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as exc:
            log.warning("hasher.directory_unreadable", path=str(directory), error=str(exc))
            continue
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name == NESTED_DEPENDENCY_DIR:
                        continue
                    if depth >= max_depth:
                        log.warning("hasher.depth_limit_reached", path=entry.path)
                        continue
                    stack.append((Path(entry.path), depth + 1))
                elif entry.is_file(follow_symlinks=False):
                    files.append(Path(entry.path))
            except OSError:
                continue
    return files


def hash_file(path: Path) -> str:
    """Return the hex SHA-256 of a file's bytes. Raises OSError on read failure."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def combine_digests(entries: list[str]) -> str:
    """Sort ``path:digest`` entries, newline-join them and hash the result."""
    joined = "\n".join(sorted(entries))
    return hashlib.sha256(joined.encode("utf-8", errors="surrogateescape")).hexdigest()


def _relative_posix(path: Path, root: Path) -> str:
    return PurePath(os.path.relpath(path, root)).as_posix()


async def compute_package_hash(
    package_dir: Path | str,
    concurrency: int = DEFAULT_CONCURRENCY,
    semaphore: asyncio.Semaphore | None = None,
) -> str:
    """Compute the content digest of the package rooted at *package_dir*.

    File reads run in worker threads, at most *concurrency* at a time. A
    caller hashing several packages can pass a shared *semaphore* instead.
    """
    root = Path(package_dir)
    files = await asyncio.to_thread(collect_files, root)
    sem = semaphore or asyncio.Semaphore(max(1, concurrency))

    async def _entry(path: Path) -> str | None:
        async with sem:
            try:
                file_digest = await asyncio.to_thread(hash_file, path)
            except OSError as exc:
                log.debug("hasher.file_unreadable", path=str(path), error=str(exc))
                return None
        return f"{_relative_posix(path, root)}:{file_digest}"

    results = await asyncio.gather(*(_entry(p) for p in files))
    entries = [r for r in results if r is not None]
    if len(entries) < len(files):
        log.info(
            "hasher.partial_hash",
            package_dir=str(root),
            skipped=len(files) - len(entries),
        )
    return combine_digests(entries)
