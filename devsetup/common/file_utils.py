# devsetup/common/file_utils.py
# -*- coding: utf-8 -*-
"""
File utilities: atomic writes, timestamped backups, and the marked-block
ConfigWriter that appends configuration to user files exactly once.
"""

import datetime
import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from devsetup.common.command_utils import get_symbols, log_message
from devsetup.config_models import AppSettings
from devsetup.engine.errors import ConfigWriteError, ProbeError

module_logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def atomic_write_text(path: PathLike, content: str) -> None:
    """
    Replace ``path`` with ``content`` via a temporary file in the same
    directory, so readers never see a truncated file.

    The parent directory is created if needed and an existing file keeps
    its permission bits.

    Raises:
        ConfigWriteError: If any filesystem operation fails.
    """
    # Symlinked targets are written through; the link itself stays.
    target = Path(path).resolve()
    temp_file_path = ""
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        existing_mode = target.stat().st_mode if target.exists() else None
        with tempfile.NamedTemporaryFile(
            mode="w",
            delete=False,
            dir=str(target.parent),
            prefix=f".{target.name}.",
            suffix=".tmp",
            encoding="utf-8",
        ) as temp_f:
            temp_f.write(content)
            temp_f.flush()
            os.fsync(temp_f.fileno())
            temp_file_path = temp_f.name
        if existing_mode is not None:
            os.chmod(temp_file_path, existing_mode & 0o7777)
        os.replace(temp_file_path, target)
        temp_file_path = ""
    except OSError as e:
        raise ConfigWriteError(target, str(e)) from e
    finally:
        if temp_file_path and os.path.exists(temp_file_path):
            os.unlink(temp_file_path)


def backup_file(
    file_path: PathLike,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[Path]:
    """
    Copy a file to ``<file>.bak.<timestamp>``.

    Returns:
        The backup path, or None when the file does not exist and there is
        nothing to back up.

    Raises:
        ConfigWriteError: If the copy fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    source = Path(file_path)
    if not source.is_file():
        log_message(
            f"{symbols.get('info', 'ℹ️')} File {source} does not exist or is not a regular file. No backup needed.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return None

    timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = source.with_name(f"{source.name}.bak.{timestamp}")
    try:
        shutil.copy2(source, backup_path)
    except OSError as e:
        raise ConfigWriteError(backup_path, f"backup failed: {e}") from e
    log_message(
        f"{symbols.get('success', '✅')} Backed up {source} to {backup_path}",
        "info",
        logger_to_use,
        app_settings,
    )
    return backup_path


@dataclass(frozen=True)
class ConfigBlock:
    """A delimited region of a config file identified by its marker."""

    target_file: Path
    marker: str
    content: str
    comment_prefix: str = "#"

    @property
    def begin_line(self) -> str:
        return f"{self.comment_prefix} >>> {self.marker} >>>"

    @property
    def end_line(self) -> str:
        return f"{self.comment_prefix} <<< {self.marker} <<<"

    def render(self) -> str:
        body = self.content if self.content.endswith("\n") else f"{self.content}\n"
        return f"{self.begin_line}\n{body}{self.end_line}\n"


class ConfigWriter:
    """
    Single writer for persistent user configuration files.

    Blocks are appended at most once per marker: when the begin line of a
    marker is already present, the file is left byte-for-byte unchanged,
    even if the requested content differs.
    """

    def __init__(
        self,
        app_settings: Optional[AppSettings] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or module_logger

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise ConfigWriteError(path, f"cannot read: {e}") from e

    @staticmethod
    def _contains_line(text: str, line: str) -> bool:
        return any(existing.rstrip() == line for existing in text.splitlines())

    def has_block(
        self, file_path: PathLike, marker: str, comment_prefix: str = "#"
    ) -> bool:
        """
        Report whether the begin line of ``marker`` is in ``file_path``.

        Raises:
            ProbeError: If the file exists but cannot be read.
        """
        block = ConfigBlock(Path(file_path), marker, "", comment_prefix)
        try:
            existing = self._read(block.target_file)
        except ConfigWriteError as e:
            raise ProbeError(str(e)) from e
        return self._contains_line(existing, block.begin_line)

    def write_block(self, block: ConfigBlock) -> bool:
        """
        Append ``block`` to its target file unless its marker is present.

        Returns:
            True if the file was written, False if it was left unchanged.

        Raises:
            ConfigWriteError: If the file cannot be read or written.
        """
        symbols = get_symbols(self.app_settings)
        existing = self._read(block.target_file)
        if self._contains_line(existing, block.begin_line):
            log_message(
                f"{symbols.get('info', 'ℹ️')} Block '{block.marker}' already present in {block.target_file}. Leaving it unchanged.",
                "info",
                self.logger,
                self.app_settings,
            )
            return False

        separator = "" if not existing or existing.endswith("\n") else "\n"
        atomic_write_text(block.target_file, f"{existing}{separator}{block.render()}")
        log_message(
            f"{symbols.get('success', '✅')} Added block '{block.marker}' to {block.target_file}",
            "success",
            self.logger,
            self.app_settings,
        )
        return True

    def upsert_block(
        self,
        file_path: PathLike,
        marker: str,
        content: str,
        comment_prefix: str = "#",
    ) -> bool:
        return self.write_block(
            ConfigBlock(Path(file_path), marker, content, comment_prefix)
        )

    def remove_matching_lines(self, file_path: PathLike, pattern: str) -> int:
        """
        Drop every line matching the regular expression ``pattern``.

        The file is backed up first and rewritten atomically. A missing file
        or no match leaves everything untouched.

        Returns:
            The number of lines removed.
        """
        path = Path(file_path)
        existing = self._read(path)
        if not existing:
            return 0
        regex = re.compile(pattern)
        lines = existing.splitlines(keepends=True)
        kept = [line for line in lines if not regex.search(line)]
        removed = len(lines) - len(kept)
        if removed:
            backup_file(path, self.app_settings, self.logger)
            atomic_write_text(path, "".join(kept))
            log_message(
                f"Removed {removed} line(s) matching '{pattern}' from {path}",
                "info",
                self.logger,
                self.app_settings,
            )
        return removed
