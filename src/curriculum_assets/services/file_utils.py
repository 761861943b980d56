import os
import re
from pathlib import Path

_UNSAFE_CHARS = re.compile(r"[^\w.\-]", re.UNICODE)


def sanitize_filename(filename: str) -> str:
    """Keep alphanumerics, dot, underscore and hyphen; replace the rest with ``_``.

    Directory parts are dropped and leading dots stripped so the result is
    always a plain name inside its target directory.
    """
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_CHARS.sub("_", name).lstrip(".")
    return name or "file"


def next_free_path(candidate: Path) -> Path:
    """Return ``candidate`` or the first ``stem-N.ext`` sibling that does not exist."""
    if not candidate.exists():
        return candidate
    stem, suffix = candidate.stem, candidate.suffix
    counter = 1
    while True:
        alternative = candidate.with_name(f"{stem}-{counter}{suffix}")
        if not alternative.exists():
            return alternative
        counter += 1


def is_within(path: Path, directory: Path) -> bool:
    """True when ``path`` resolves to a location inside ``directory``."""
    try:
        Path(os.path.realpath(path)).relative_to(os.path.realpath(directory))
    except ValueError:
        return False
    return True
