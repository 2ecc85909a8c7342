from pathlib import Path

from rulebook_rag.core.exception import DocumentLoadError
from rulebook_rag.core.logger import logger


def resolve_rulebook_path(file_name: str) -> Path:
    """Rulebook paths are relative to the working directory unless absolute."""
    return Path.cwd() / file_name


def load_rulebook(file_name: str) -> str:
    """
    Read the rulebook as UTF-8 text.
    Raises DocumentLoadError when the file is missing or unreadable.
    """

    path = resolve_rulebook_path(file_name)
    if not path.is_file():
        raise DocumentLoadError(f"Rulebook file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentLoadError(f"Rulebook file unreadable: {path} ({e})")

    logger.info(f"Loaded rulebook {path.name} ({len(text)} chars)")
    return text
