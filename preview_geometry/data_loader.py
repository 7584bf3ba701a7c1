"""
Data loader module for candidate capture sizes.

Supports:
    - CSV files with a width,height header
    - Plain text lists with one WIDTHxHEIGHT entry per line

CSV Format:
    width, height
    1920, 1080

Text Format:
    # supported preview sizes
    1920x1080
    1280x720

Order is preserved: it is the order the device reported the sizes in,
which decides ties during selection.
"""

import csv
from pathlib import Path
from typing import List, Optional
import logging

from .config import Size, PreviewConfig

logger = logging.getLogger(__name__)


def load_candidate_sizes(file_path: str) -> List[Size]:
    """
    Load a candidate size list from a CSV or text file.

    Args:
        file_path: Path to the size list

    Returns:
        Sizes in file order
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Candidate size file not found: {file_path}")

    with open(path, 'r', newline='') as f:
        lines = [
            line for line in f
            if line.strip() and not line.lstrip().startswith('#')
        ]

    if not lines:
        logger.warning(f"No sizes found in {file_path}")
        return []

    header = [h.strip().lower() for h in lines[0].split(',')]
    if 'width' in header and 'height' in header:
        sizes = _parse_csv(lines)
    else:
        sizes = [Size.parse(line) for line in lines]

    logger.info(f"Loaded {len(sizes)} candidate sizes from {file_path}")
    return sizes


def _parse_csv(lines: List[str]) -> List[Size]:
    reader = csv.DictReader(lines, skipinitialspace=True)
    # Normalize header names
    reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]

    sizes = []
    for row_num, row in enumerate(reader, start=2):
        try:
            sizes.append(Size(int(row['width']), int(row['height'])))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid size on row {row_num}: {e}") from None
    return sizes


class CandidateSource:
    """
    Collects the candidate sizes named by a configuration.

    Inline ``candidate_sizes`` come first, followed by the entries of the
    candidate size file; duplicates keep their first position.
    """

    def __init__(self, config: PreviewConfig):
        self.config = config
        self.sizes: List[Size] = []

    def load(self) -> List[Size]:
        sizes = list(self.config.candidate_sizes)

        file_path: Optional[str] = self.config.files.candidate_sizes
        if file_path:
            sizes.extend(load_candidate_sizes(file_path))

        seen = set()
        unique = []
        for size in sizes:
            if size not in seen:
                seen.add(size)
                unique.append(size)

        if len(unique) < len(sizes):
            logger.debug(f"Dropped {len(sizes) - len(unique)} duplicate size(s)")

        self.sizes = unique
        return unique
