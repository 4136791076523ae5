"""
Where exported datasets end up.

Two kinds of destination:
- SaveDialog: the user picks a path (may cancel). Only used when available.
- DownloadFallback: drop the file somewhere sensible without asking.

DatasetSaver probes the dialog first and falls back to the download path
when no dialog is available. A cancelled dialog is a no-op, not an error.
"""

import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtensionFilter:
    """File type filter shown by save dialogs, e.g. ("JSONL Files", ["jsonl"])."""
    name: str
    extensions: List[str]


class SaveDialog(ABC):
    """Ask the user where to save."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this dialog can be shown in the current environment."""
        pass

    @abstractmethod
    def save(self, suggested_name: str, filters: List[ExtensionFilter]) -> Optional[str]:
        """Return the chosen path, or None if the user cancelled."""
        pass

    def write(self, path: str, content: str) -> None:
        target = Path(path).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


class DownloadFallback(ABC):
    """Save without asking."""

    @abstractmethod
    def download(self, file_name: str, content: str, mime_type: str) -> str:
        """Store the content and return where it went."""
        pass


class PromptSaveDialog(SaveDialog):
    """Terminal 'save as' prompt. Empty answer keeps the suggested name, '-' cancels."""

    def __init__(self, input_fn: Callable[[str], str] = input, interactive: Optional[bool] = None):
        self._input = input_fn
        self._interactive = interactive

    def is_available(self) -> bool:
        if self._interactive is not None:
            return self._interactive
        return sys.stdin is not None and sys.stdin.isatty()

    def save(self, suggested_name: str, filters: List[ExtensionFilter]) -> Optional[str]:
        kinds = ", ".join(f.name for f in filters)
        try:
            answer = self._input(f"Save dataset as [{suggested_name}] ({kinds}, '-' to cancel): ").strip()
        except EOFError:
            return None
        if answer == "-":
            return None
        return answer or suggested_name


class DirectorySaveDialog(SaveDialog):
    """Non-interactive 'dialog' that always saves into a fixed directory."""

    def __init__(self, directory: Optional[str]):
        self.directory = directory

    def is_available(self) -> bool:
        return bool(self.directory)

    def save(self, suggested_name: str, filters: List[ExtensionFilter]) -> Optional[str]:
        return str(Path(self.directory).expanduser() / suggested_name)


class DownloadsFolder(DownloadFallback):
    """Write into the user's downloads folder, never overwriting an existing file."""

    def __init__(self, directory: str):
        self.directory = Path(directory).expanduser()

    def _free_path(self, file_name: str) -> Path:
        candidate = self.directory / file_name
        stem, suffix = candidate.stem, candidate.suffix
        n = 1
        while candidate.exists():
            candidate = self.directory / f"{stem} ({n}){suffix}"
            n += 1
        return candidate

    def download(self, file_name: str, content: str, mime_type: str) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self._free_path(file_name)
        target.write_text(content, encoding="utf-8")
        logger.info(f"Downloaded {len(content)} chars ({mime_type}) to {target}")
        return str(target)


@dataclass
class SaveResult:
    """Outcome of DatasetSaver.save()."""
    path: Optional[str]
    via_dialog: bool

    @property
    def cancelled(self) -> bool:
        return self.path is None


class DatasetSaver:
    """Pick a save strategy by capability and run it."""

    def __init__(self, dialog: Optional[SaveDialog], fallback: DownloadFallback):
        self.dialog = dialog
        self.fallback = fallback

    def save(self, file_name: str, content: str, mime_type: str) -> SaveResult:
        """
        Save `content`. Returns SaveResult with path None if the user cancelled.
        Write errors (OSError) propagate.
        """
        if self.dialog is not None and self.dialog.is_available():
            extension = file_name.rsplit(".", 1)[-1]
            filters = [ExtensionFilter(name=f"{extension.upper()} Files", extensions=[extension])]
            path = self.dialog.save(file_name, filters)
            if path is None:
                logger.info("Save dialog cancelled")
                return SaveResult(path=None, via_dialog=True)
            self.dialog.write(path, content)
            logger.info(f"Dataset saved to {path}")
            return SaveResult(path=path, via_dialog=True)

        logger.info("No save dialog available, falling back to download")
        return SaveResult(path=self.fallback.download(file_name, content, mime_type), via_dialog=False)
