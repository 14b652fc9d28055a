import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


def ensure_parent(path: Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def safe_unlink(path: os.PathLike[str] | str) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        return


def fsync_dir(parent: Path) -> None:
    """
    Ensure directory entry durability after atomic rename.
    """
    fd: int | None = None
    try:
        fd = os.open(parent, os.O_RDONLY)
        os.fsync(fd)
    except OSError:
        # not supported on every platform (e.g. directories on Windows)
        return
    finally:
        if fd is not None:
            os.close(fd)


def fsync_file(path: Path) -> None:
    try:
        with path.open("rb") as f:
            os.fsync(f.fileno())
    except OSError:
        return


@contextmanager
def atomic_output(path: Path, *, mode: int = 0o644) -> Iterator[Path]:
    """
    Yield a temporary path next to `path`; on clean exit it replaces `path`.

    Guarantees:
      - readers either see no file / the old complete file or the new complete file
      - a failed write never leaves a partial document under the final name
      - temp file written in the same directory (atomic replace works)
      - file contents are fsync()'d before replace
    """
    path = Path(path)
    ensure_parent(path)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    os.close(fd)
    tmp_path = Path(tmp_name)

    try:
        yield tmp_path

        fsync_file(tmp_path)
        try:
            os.chmod(tmp_path, mode)
        except OSError:
            pass
        os.replace(tmp_path, path)
        fsync_dir(path.parent)
    finally:
        if tmp_path.exists():
            safe_unlink(tmp_path)
