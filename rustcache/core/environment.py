"""
Runtime environment for subprocesses.

Installation steps extend the environment (rustup homes, mirror servers,
PATH entries). Instead of mutating ``os.environ``, every change is recorded
in a RuntimeEnvironment and applied as an overlay when a subprocess is
started. The surrounding process environment stays untouched.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from rustcache.core.exceptions import CommandError

logger = logging.getLogger(__name__)


class RuntimeEnvironment:
    """
    Base environment plus an overlay of variables and PATH prefixes.

    Attributes:
        base: Snapshot of the environment taken at construction
        overrides: Variables set by installation steps
        path_prefix: Directories prepended to PATH, most recent first
    """

    def __init__(self, base: Optional[Mapping[str, str]] = None):
        self.base: Dict[str, str] = dict(os.environ if base is None else base)
        self.overrides: Dict[str, str] = {}
        self.path_prefix: List[str] = []

    def set(self, name: str, value: str) -> None:
        """Set a variable for all subsequent subprocesses."""
        logger.debug(f"env: {name}={value}")
        self.overrides[name] = value

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a variable, overlay first."""
        if name in self.overrides:
            return self.overrides[name]
        return self.base.get(name, default)

    def prepend_path(self, directory: Union[str, Path]) -> None:
        """Put a directory in front of PATH (idempotent)."""
        entry = str(Path(directory).resolve())
        if entry in self.path_prefix:
            self.path_prefix.remove(entry)
        self.path_prefix.insert(0, entry)

    @property
    def path(self) -> str:
        """The effective PATH value."""
        entries = list(self.path_prefix)
        base_path = self.get("PATH", "")
        if base_path:
            entries.append(base_path)
        return os.pathsep.join(entries)

    def as_dict(self) -> Dict[str, str]:
        """Merged environment to hand to a subprocess."""
        env = dict(self.base)
        env.update(self.overrides)
        env["PATH"] = self.path
        return env

    def which(self, name: str) -> Optional[str]:
        """Resolve an executable against the effective PATH."""
        return shutil.which(name, path=self.path)

    def run(
        self,
        args: Union[str, Sequence[str]],
        step: str,
        shell: bool = False,
        check: bool = True,
        cwd: Optional[Path] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run an external command with this environment.

        Output is not captured so it streams to the console of the CI job.

        Args:
            args: Command and arguments, or a command line when shell=True
            step: Human readable description used in error messages
            shell: Run through the system shell
            check: Raise CommandError on non-zero exit
            cwd: Working directory

        Returns:
            The completed process

        Raises:
            CommandError: If the command cannot be started or (with check)
                exits non-zero
        """
        if not shell:
            args = list(args)
            resolved = self.which(args[0])
            if resolved:
                args[0] = resolved

        logger.debug(f"Running: {args}")

        try:
            result = subprocess.run(args, env=self.as_dict(), shell=shell, cwd=cwd)
        except OSError as e:
            raise CommandError(step, detail=str(e)) from e

        if check and result.returncode != 0:
            raise CommandError(step, result.returncode)

        return result
