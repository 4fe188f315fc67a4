"""File handling utilities."""

import os
import re
import tempfile
import unicodedata
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The path (for chaining)
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_text_atomic(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Replace the contents of ``path`` in a single rename.

    The text is written to a temporary file in the same directory and moved
    over the target, so readers see either the old or the new file.

    Args:
        path: Destination file
        content: Text to write
        encoding: Text encoding
    """
    ensure_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def safe_filename(name: str, max_length: int = 120) -> str:
    """Turn free text (a student name, a date) into a portable file name stem.

    Args:
        name: Original text
        max_length: Maximum length of the result

    Returns:
        ASCII stem made of letters, digits, ``-``, ``_`` and ``.``
    """
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    stem = re.sub(r"[^A-Za-z0-9._-]+", "_", ascii_name.strip())
    stem = stem.strip("._")[:max_length]
    return stem or "unnamed"
