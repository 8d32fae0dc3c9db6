"""
Content hashing and duplicate detection for uploaded dump files.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Union

logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    """Files sharing one SHA-256 digest (byte-identical content)."""
    digest: str
    paths: List[Path] = field(default_factory=list)


def hash_content(content: Union[str, bytes]) -> str:
    if isinstance(content, str):
        content = content.encode('utf-8')
    return hashlib.sha256(content).hexdigest()


def hash_file(path: Path, chunk_size: int = 65536) -> str:
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            digest.update(chunk)
    return digest.hexdigest()


def find_duplicate_groups(paths: Iterable[Path]) -> List[DuplicateGroup]:
    """Group files by content hash; only groups with more than one file are returned."""
    by_digest: Dict[str, DuplicateGroup] = {}
    for path in paths:
        path = Path(path)
        try:
            digest = hash_file(path)
        except OSError as e:
            logger.warning(f"Could not hash {path}: {e}")
            continue
        by_digest.setdefault(digest, DuplicateGroup(digest)).paths.append(path)
    groups = [g for g in by_digest.values() if len(g.paths) > 1]
    logger.debug(f"Found {len(groups)} duplicate groups")
    return groups
