"""
Plan file storage: path resolution, etags and atomic writes.

Design:
    root_dir is a trust boundary. Every resolved path is checked lexically
    (by relative-path components) to stay inside it. Symlinks are not
    resolved, so a plans directory may be a symlink to somewhere else.

    The etag of a document is the hex SHA-256 of its text. It is the only
    coordination token between independent writers.

    Writes go to a sibling temp file first. Replacing writes use os.replace;
    create-only writes hard-link the temp file into place, so exactly one of
    several concurrent creators wins and the others see PlanExistsError.
"""

import hashlib
import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Union

from models.errors import PathEscapeError, PlanExistsError, PlanNotFoundError, PlanValidationError
from utils.formatting import DEFAULT_PLANS_DIR
from utils.ids import assert_safe_id

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanConfig:
    """Where plan files live. Supplied by the caller; never read from the environment here."""

    root_dir: Union[str, Path]
    plans_dir: str = DEFAULT_PLANS_DIR

    @property
    def root(self) -> Path:
        return Path(os.path.abspath(self.root_dir))


@dataclass
class PlanFile:
    absolute_path: Path
    text: str
    etag: str = field(default="")

    def __post_init__(self) -> None:
        if not self.etag:
            self.etag = sha256_hex(self.text)


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

def _assert_within_root(root: Path, path: Path) -> None:
    rel = os.path.relpath(path, root)
    if rel == os.curdir:
        return
    if Path(rel).parts[0] == os.pardir or os.path.isabs(rel):
        raise PathEscapeError(f"Resolved path escapes root_dir: {path}")


def resolve_plans_dir(config: PlanConfig) -> Path:
    """Absolute plans directory, guaranteed (lexically) inside root_dir."""
    root = config.root
    plans_dir = Path(os.path.normpath(os.path.join(root, config.plans_dir)))
    _assert_within_root(root, plans_dir)
    return plans_dir


def resolve_plan_path(config: PlanConfig, plan_id: str) -> Path:
    assert_safe_id("plan_id", plan_id)
    path = resolve_plans_dir(config) / f"{plan_id}.md"
    _assert_within_root(config.root, path)
    return path


def relative_to_root(config: PlanConfig, path: Path) -> str:
    return Path(os.path.relpath(path, config.root)).as_posix()


def iter_plan_paths(config: PlanConfig) -> Iterator[Path]:
    """Yield ``*.md`` files in the plans directory, sorted by name."""
    plans_dir = resolve_plans_dir(config)
    if not plans_dir.is_dir():
        return
    for path in sorted(plans_dir.iterdir()):
        if path.suffix == ".md" and path.is_file():
            yield path


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def read_text_exact(path: Path) -> str:
    """Read UTF-8 text without newline translation so CRLF survives."""
    with open(path, "r", encoding="utf-8", newline="") as fh:
        return fh.read()


def read_plan_file(config: PlanConfig, plan_id: str) -> PlanFile:
    """Read a plan file and compute its etag from the content (not the mtime)."""
    path = resolve_plan_path(config, plan_id)
    try:
        text = read_text_exact(path)
    except FileNotFoundError:
        raise PlanNotFoundError(f"Plan not found: {plan_id}") from None
    except UnicodeDecodeError as e:
        raise PlanValidationError(f"Plan is not valid UTF-8: {plan_id} ({e.reason} at byte {e.start})") from None
    log.debug("Read %s (%d bytes)", path, len(text))
    return PlanFile(absolute_path=path, text=text)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _target_mode(path: Path) -> int:
    """Mode the written file should end up with: the existing file's, else 0o666 minus umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _write_temp(path: Path, text: str) -> str:
    """
    Write ``text`` to a new temp file beside ``path`` and return its name.

    mkstemp creates the file as 0600; it is chmod-ed to the target mode before
    it is moved into place.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        os.chmod(tmp, _target_mode(path))
    except BaseException:
        os.unlink(tmp)
        raise
    return tmp


def write_file_atomic(path: Path, text: str) -> None:
    """Atomic write: temp-file in same dir, then os.replace."""
    tmp = _write_temp(path, text)
    try:
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    log.debug("Wrote %s (%d bytes)", path, len(text))


def create_file_exclusive(path: Path, text: str) -> None:
    """
    Create ``path`` with ``text`` only if it does not exist yet.

    The temp file is hard-linked into place; linking fails if the target
    exists, so concurrent creators race safely. The temp name is always removed.
    """
    tmp = _write_temp(path, text)
    try:
        os.link(tmp, path)
    except FileExistsError:
        raise PlanExistsError(f"Plan already exists: {path.stem}") from None
    finally:
        os.unlink(tmp)
    log.debug("Created %s (%d bytes)", path, len(text))
