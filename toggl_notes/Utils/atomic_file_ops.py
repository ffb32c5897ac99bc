"""
Atomic file write helpers.

Notes and the config file are rewritten in place; a crash mid-write must
leave either the old or the new file, never a truncated one.
"""

import os
import tempfile
from pathlib import Path
from typing import Union
from loguru import logger


def atomic_write_text(
    file_path: Union[str, Path],
    content: str,
    encoding: str = 'utf-8',
) -> None:
    """
    Write text to ``file_path`` via a sibling temp file and ``os.replace``.

    The existing file's permission bits are kept when it is replaced.

    Raises:
        OSError: If the temp file cannot be written or renamed
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    existing_mode = None
    if file_path.exists():
        existing_mode = file_path.stat().st_mode & 0o777

    fd, temp_path = tempfile.mkstemp(
        dir=file_path.parent,
        prefix=f".{file_path.name}.",
        suffix=".tmp",
        text=True
    )
    try:
        with os.fdopen(fd, 'w', encoding=encoding, newline='') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if existing_mode is not None:
            os.chmod(temp_path, existing_mode)
        os.replace(temp_path, file_path)
    except OSError as e:
        logger.error(f"Failed to atomically write to {file_path}: {e}")
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise

    logger.debug(f"Atomically wrote {len(content)} chars to {file_path}")
