# common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions for reading and atomically replacing files.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

module_logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_bytes_if_exists(
    file_path: PathLike, current_logger: Optional[logging.Logger] = None
) -> Optional[bytes]:
    """
    Returns the raw content of a regular file, or None if it does not exist.

    Errors other than a missing file propagate.
    """
    logger_to_use = current_logger if current_logger else module_logger
    path = Path(file_path)
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        logger_to_use.debug(f"File {path} does not exist.")
        return None
    logger_to_use.debug(f"Read {len(content)} bytes from {path}.")
    return content


def write_file_atomic(
    file_path: PathLike,
    content: bytes,
    mode: int,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Replaces the content of a file in a single atomic step.

    The parent directory is created if needed. The content is written to a
    temporary file in the same directory, given the requested mode and then
    renamed over the target, so readers never see a partially written file.

    Parameters:
        file_path: The file to write.
        content: The full new content.
        mode: Permission bits applied to the file, e.g. 0o644.
        current_logger: Optional logger instance.

    Raises:
        OSError: The directory, temporary file or rename failed. The target
            is left untouched in that case.
    """
    logger_to_use = current_logger if current_logger else module_logger
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "wb") as temp_file:
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise
    logger_to_use.debug(
        f"Wrote {len(content)} bytes to {path} (mode {oct(mode)})."
    )
