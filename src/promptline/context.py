"""Per-render state shared by modules: directory contents, environment and command execution."""
from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .datatypes import AppConfig
from .module import Module

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOutput:
    """Captured output of a successful external command."""

    stdout: str
    stderr: str


def _name_extensions(name: str) -> Set[str]:
    """Return every dotted suffix of a file name (``a.tar.gz`` -> ``{"gz", "tar.gz"}``)."""

    stem = name[1:] if name.startswith(".") else name
    parts = stem.split(".")
    return {".".join(parts[index:]) for index in range(1, len(parts)) if all(parts[index:])}


@dataclass
class DirContents:
    """Names found directly inside the current directory."""

    files: Set[str] = field(default_factory=set)
    extensions: Set[str] = field(default_factory=set)
    folders: Set[str] = field(default_factory=set)

    @classmethod
    def from_path(cls, path: Path, timeout_ms: int) -> "DirContents":
        """
        List ``path`` once, stopping early when the scan exceeds ``timeout_ms``.

        Raises:
            OSError: If the directory cannot be listed.
        """
        contents = cls()
        deadline = time.perf_counter() + timeout_ms / 1000
        with os.scandir(path) as entries:
            for entry in entries:
                if time.perf_counter() > deadline:
                    logger.debug("Scanning %s exceeded %d ms; using partial listing", path, timeout_ms)
                    break
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    continue
                if is_dir:
                    contents.folders.add(entry.name)
                else:
                    contents.files.add(entry.name)
                    contents.extensions.update(_name_extensions(entry.name))
        return contents


class ScanDir:
    """Builder that matches the directory contents against a module's detection rules."""

    def __init__(self, contents: DirContents) -> None:
        self._contents = contents
        self._files: List[str] = []
        self._extensions: List[str] = []
        self._folders: List[str] = []

    def set_files(self, files: Iterable[str]) -> "ScanDir":
        self._files = list(files)
        return self

    def set_extensions(self, extensions: Iterable[str]) -> "ScanDir":
        self._extensions = list(extensions)
        return self

    def set_folders(self, folders: Iterable[str]) -> "ScanDir":
        self._folders = list(folders)
        return self

    def is_match(self) -> bool:
        contents = self._contents
        return (
            any(name in contents.files for name in self._files)
            or any(ext in contents.extensions for ext in self._extensions)
            or any(name in contents.folders for name in self._folders)
        )


class Context:
    """Everything a module may consult while rendering one prompt."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        path: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        shell: Optional[str] = None,
    ) -> None:
        """
        Create a context for one prompt render.

        Parameters:
            config (Optional[AppConfig]): Loaded configuration; defaults are used when omitted.
            path (Optional[Path]): Directory the prompt describes; defaults to the process working directory.
            env (Optional[Mapping[str, str]]): Environment snapshot; defaults to ``os.environ``.
            shell (Optional[str]): Target shell, used for escape-sequence wrapping.
        """
        self.config = config or AppConfig()
        self.current_dir = Path(path) if path is not None else Path.cwd()
        self.env: Dict[str, str] = dict(os.environ if env is None else env)
        self.shell = shell
        self._dir_contents: Optional[DirContents] = None
        # Sync modules run in worker threads while async ones run on the loop.
        self._scan_lock = threading.Lock()

    @property
    def command_timeout(self) -> float:
        """Timeout for external commands, in seconds."""

        return self.config.prompt.command_timeout / 1000

    def get_env(self, name: str) -> Optional[str]:
        """Return the environment value for ``name``, treating empty values as unset."""

        value = self.env.get(name)
        return value or None

    def get_home(self) -> Optional[Path]:
        home = self.get_env("HOME") or self.get_env("USERPROFILE")
        if home:
            return Path(home)
        try:
            return Path.home()
        except RuntimeError:
            return None

    def module_config(self, name: str) -> Any:
        return getattr(self.config, name, None)

    def is_module_disabled(self, name: str) -> bool:
        config = self.module_config(name)
        return bool(getattr(config, "disabled", False))

    def new_module(self, name: str) -> Module:
        return Module(name, self.module_config(name))

    def dir_contents(self) -> DirContents:
        """Return the cached listing of the current directory, scanning it once on first use."""

        with self._scan_lock:
            if self._dir_contents is None:
                self._dir_contents = DirContents.from_path(
                    self.current_dir, self.config.prompt.scan_timeout
                )
            return self._dir_contents

    def try_begin_scan(self) -> Optional[ScanDir]:
        """Start a detection scan, or return `None` when the directory cannot be listed."""

        try:
            return ScanDir(self.dir_contents())
        except OSError as exc:
            logger.debug("Unable to list %s: %s", self.current_dir, exc)
            return None

    def exec_cmd(self, cmd: str, args: Sequence[str]) -> Optional[CommandOutput]:
        """Run ``cmd`` with ``args`` and return its output, or `None` if it is missing, fails or times out."""

        return self._run_command([cmd, *args])

    async def async_exec_cmd(self, cmd: str, args: Sequence[str]) -> Optional[CommandOutput]:
        """Asynchronous counterpart of `exec_cmd`."""

        return await self._run_command_async([cmd, *args])

    def _resolve_executable(self, name: str) -> Optional[str]:
        executable = shutil.which(name, path=self.env.get("PATH"))
        if executable is None:
            logger.debug("Executable '%s' not found on PATH", name)
        return executable

    def _run_command(self, argv: List[str]) -> Optional[CommandOutput]:
        executable = self._resolve_executable(argv[0])
        if executable is None:
            return None
        try:
            completed = subprocess.run(
                [executable, *argv[1:]],
                capture_output=True,
                text=True,
                timeout=self.command_timeout,
                env=self.env,
                cwd=self.current_dir,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Executing command %s timed out", argv)
            return None
        except OSError as exc:
            logger.debug("Unable to run %s: %s", argv, exc)
            return None
        if completed.returncode != 0:
            logger.debug("Command %s exited with status %d", argv, completed.returncode)
            return None
        return CommandOutput(stdout=completed.stdout, stderr=completed.stderr)

    async def _run_command_async(self, argv: List[str]) -> Optional[CommandOutput]:
        executable = self._resolve_executable(argv[0])
        if executable is None:
            return None
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *argv[1:],
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env,
                cwd=str(self.current_dir),
            )
        except OSError as exc:
            logger.debug("Unable to run %s: %s", argv, exc)
            return None
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.command_timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning("Executing command %s timed out", argv)
            return None
        if process.returncode != 0:
            logger.debug("Command %s exited with status %d", argv, process.returncode)
            return None
        return CommandOutput(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
