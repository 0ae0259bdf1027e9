"""
Seed loading: a directory tree of .txt wordlists, one relative path per line
"""
import os
from dataclasses import dataclass, field
from typing import List

from pathfinder.config.logging_config import seeds_logger
from pathfinder.utils.decorators import log_execution
from pathfinder.utils.error_handler import SetupError
from pathfinder.utils.url_tools import join_url

# utf-8-sig first to get rid of BOMs
ENCODINGS_TO_TRY = ('utf-8-sig', 'utf-8', 'latin-1')


@dataclass
class SeedSet:
    urls: List[str] = field(default_factory=list)
    files_scanned: int = 0


def read_wordlist(path):
    """Non-empty, non-comment lines of one file, or None if it can't be read."""
    for enc in ENCODINGS_TO_TRY:
        try:
            with open(path, 'r', encoding=enc) as file:
                return [line.strip() for line in file
                        if line.strip() and not line.strip().startswith('#')]
        except UnicodeDecodeError:
            continue
        except OSError as e:
            seeds_logger.warning(f"Could not open file {path}: {e}")
            return None
    seeds_logger.warning(f"Skipping {path}: unsupported encoding")
    return None


def iter_wordlists(seed_dir):
    """Every .txt file under seed_dir, in a stable order."""
    for root, dirs, files in os.walk(seed_dir):
        dirs.sort()
        for name in sorted(files):
            if name.lower().endswith('.txt'):
                yield os.path.join(root, name)


@log_execution(log_args=True, log_time=True)
def collect_urls(seed_dir, base_url):
    """
    Walk seed_dir and turn each wordlist line into a full URL under base_url.

    Raises:
        SetupError: seed_dir is missing or not a directory
    """
    if not os.path.isdir(seed_dir):
        raise SetupError(f"Base directory '{seed_dir}' does not exist or is not accessible.")

    seeds = SeedSet()
    for path in iter_wordlists(seed_dir):
        lines = read_wordlist(path)
        if lines is None:
            continue
        seeds.files_scanned += 1
        seeds.urls.extend(join_url(base_url, line) for line in lines)

    seeds_logger.info(f"Found {len(seeds.urls)} URLs to scan from {seeds.files_scanned} files.")
    return seeds
