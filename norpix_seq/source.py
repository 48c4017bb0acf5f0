"""
Input resolution for SEQ files.

A conversion accepts either the path of a .seq file or a directory that
holds exactly one .seq file.
"""

import logging
from pathlib import Path
from typing import BinaryIO

from .errors import SeqFileNotFound, SeqFileUnreadable


logger = logging.getLogger(__name__)


def resolve_seq_path(path: str | Path) -> Path:
    """
    Resolve a user-supplied input path to a single SEQ file.

    Args:
        path: A .seq file, or a directory containing exactly one .seq file

    Returns:
        Path to the SEQ file

    Raises:
        SeqFileNotFound: If nothing exists at the path, or the directory holds
            no .seq file or more than one
    """
    p = Path(path)
    if p.is_dir():
        candidates = sorted(p.glob("*.seq"))
        if not candidates:
            raise SeqFileNotFound(f"No seq file found in {p}")
        if len(candidates) > 1:
            raise SeqFileNotFound(
                f"Found {len(candidates)} seq files in {p}; pass one file explicitly"
            )
        logger.debug(f"Resolved directory {p} to {candidates[0]}")
        return candidates[0]

    if not p.is_file():
        raise SeqFileNotFound(f"Specified input file does not exist: {p}")
    return p


def open_seq(path: str | Path) -> BinaryIO:
    """
    Open a SEQ file for binary reading.

    Raises:
        SeqFileNotFound: If the path does not resolve to a SEQ file
        SeqFileUnreadable: If the file cannot be opened
    """
    seq_path = resolve_seq_path(path)
    try:
        return open(seq_path, "rb")
    except OSError as e:
        raise SeqFileUnreadable(f"Cannot open {seq_path}: {e}") from e
