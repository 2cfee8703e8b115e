"""File based diagnostic log for Google Ads API communication.

Entries are only written while the ``enable_logging`` setting is truthy; the
flag is read on every call so toggling it takes effect immediately. Secrets
must go through :meth:`DiagnosticLog.mask` before they reach a message.
"""

from __future__ import annotations

import fcntl
import os
from pathlib import Path

from django.conf import settings as django_settings
from django.utils import timezone

from apps.gads.conf import Settings
from apps.gads.services import format_offset_datetime

DIR_NAME = "gads-reporter"
FILE_NAME = "gads-reporter.log"


class DiagnosticLog:
    MAX_SIZE = 512_000
    TRIM_KEEP = 256_000

    def __init__(self, settings: Settings, root: str | os.PathLike[str] | None = None) -> None:
        self.settings = settings
        self._root = Path(root) if root is not None else None

    @property
    def root(self) -> Path:
        if self._root is not None:
            return self._root
        configured = getattr(django_settings, "GADS_LOG_ROOT", None) or django_settings.MEDIA_ROOT
        return Path(configured)

    @property
    def path(self) -> Path:
        return self.root / DIR_NAME / FILE_NAME

    def relative_path(self) -> str:
        try:
            return str(self.path.relative_to(Path(django_settings.BASE_DIR)))
        except ValueError:
            return str(self.path)

    def info(self, message: str) -> None:
        self._write("INFO", message)

    def error(self, message: str) -> None:
        self._write("ERROR", message)

    @staticmethod
    def mask(value: str) -> str:
        """Hide everything but the last four characters of ``value``."""

        visible = 4
        if not value:
            return ""
        if len(value) <= visible:
            return "*" * len(value)
        return "*" * (len(value) - visible) + value[-visible:]

    def exists(self) -> bool:
        return self.path.is_file()

    def get_contents(self) -> str:
        try:
            with self.path.open("r", encoding="utf-8", errors="replace") as handle:
                fcntl.flock(handle, fcntl.LOCK_SH)
                try:
                    return handle.read()
                finally:
                    fcntl.flock(handle, fcntl.LOCK_UN)
        except FileNotFoundError:
            return ""

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def _write(self, level: str, message: str) -> None:
        if not self.settings.get("enable_logging"):
            return

        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)

        # [2026-02-26 14:30:00+01:00] INFO Message
        stamp = timezone.localtime(timezone.now())
        line = f"[{format_offset_datetime(stamp)}] {level} {message}\n".encode("utf-8")

        with path.open("a+b") as handle:
            fcntl.flock(handle, fcntl.LOCK_EX)
            try:
                if os.fstat(handle.fileno()).st_size > self.MAX_SIZE:
                    self._trim(handle)
                handle.write(line)
                handle.flush()
            finally:
                fcntl.flock(handle, fcntl.LOCK_UN)

    def _trim(self, handle) -> None:
        handle.seek(0)
        tail = handle.read()[-self.TRIM_KEEP:]
        first_newline = tail.find(b"\n")
        if first_newline != -1:
            tail = tail[first_newline + 1:]
        handle.seek(0)
        handle.truncate()
        handle.write(tail)

