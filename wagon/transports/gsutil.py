"""gsutil transport for ``gsutil:gs://bucket/basedir`` repositories.

Transfers are delegated to the external ``gsutil`` tool, which makes this the
only transport that can copy whole directories. ``gsutil cp -n`` never
overwrites an existing object.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence, Tuple

from wagon.error_mapping import PUT, PUT_DIRECTORY, translate_error
from wagon.events import RequestType, Resource
from wagon.exceptions import CommandExecutionError, ResourceDoesNotExistError

from .base import PathLike, Transport
from .registry import register_transport

logger = logging.getLogger(__name__)

NO_MATCH_MARKER = "matched no objects"


@dataclass
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str


class CommandExecutor:
    """Run an external command and capture its output.

    Args:
        executable: Program to run
        on_debug: Receives the command line and its captured output
    """

    def __init__(
        self, executable: str, on_debug: Optional[Callable[[str], None]] = None
    ) -> None:
        self.executable = executable
        self.on_debug = on_debug

    def _debug(self, message: str) -> None:
        if self.on_debug is not None and message:
            self.on_debug(message)

    def execute(self, arguments: Sequence[str]) -> CommandResult:
        """Run the executable with ``arguments``.

        Raises:
            CommandExecutionError: If the command cannot be started or exits
                non-zero (message ``Exit code N - <stderr>``)
        """
        command = [self.executable, *arguments]
        command_line = shlex.join(command)
        self._debug(f"Executing command: {command_line}")

        try:
            completed = subprocess.run(
                command, capture_output=True, text=True, check=False
            )
        except OSError as exc:
            raise CommandExecutionError(
                f"Error executing command line: {command_line}",
                command=command_line,
                original_error=exc,
            ) from exc

        result = CommandResult(completed.returncode, completed.stdout, completed.stderr)
        self._debug(result.stdout)
        self._debug(result.stderr)

        if result.exit_code != 0:
            raise CommandExecutionError(
                f"Exit code {result.exit_code} - {result.stderr.strip()}",
                command=command_line,
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return result


@register_transport("gsutil")
class GSUtilTransport(Transport):
    """Repository transport that shells out to ``gsutil``."""

    backend_type = "gsutil"

    def _connect(self) -> CommandExecutor:
        self.locator.require_host()
        return CommandExecutor(self.settings.gsutil.executable, self.fire_session_debug)

    def _bucket_url(self) -> str:
        repository = self.repository
        return f"{repository.scheme}://{repository.host}/"

    def object_url(self, key: str) -> str:
        return self._bucket_url() + key

    def _run(self, *arguments: str) -> CommandResult:
        return self.connection.handle().execute(arguments)

    def _cp(self, source: str, destination: str) -> None:
        self._run("-m", "cp", "-n", "-r", source, destination)

    def _object_exists(self, key: str) -> bool:
        try:
            self._run("-q", "stat", self.object_url(key))
        except CommandExecutionError as exc:
            # -q stat exits non-zero silently only when the object is absent
            if exc.exit_code is not None and not (exc.stderr or "").strip():
                return False
            raise
        return True

    def _list(self, directory_key: str) -> Iterator[Tuple[str, bool]]:
        # gsutil ls marks sub-directories with a trailing delimiter
        try:
            result = self._run("ls", self.object_url(directory_key))
        except CommandExecutionError as exc:
            if exc.exit_code is not None and NO_MATCH_MARKER in (exc.stderr or ""):
                return
            raise
        bucket_url = self._bucket_url()
        for line in result.stdout.splitlines():
            url = line.strip()
            if url.startswith(bucket_url):
                key = url[len(bucket_url) :]
                yield key, key.endswith("/")

    def get(self, resource_name: str, destination: PathLike) -> None:
        """Copy a resource to a local file.

        A failing ``gsutil`` run is reported as a get/error event and logged;
        it is not raised. Callers relying on exceptions should check the
        destination afterwards.
        """
        resource = Resource(resource_name)
        target = Path(destination)

        self.fire_get_initiated(resource, target)
        self.create_parent_directories(target)
        self.fire_get_started(resource, target)

        source = self.object_url(self.keys.key(resource_name))
        try:
            self._cp(source, str(target.absolute()))
        except CommandExecutionError as exc:
            logger.error("gsutil get %s -> %s failed: %s", source, target, exc)
            self.fire_transfer_error(resource, exc, RequestType.GET, target)
            return

        self.fire_get_completed(resource, target)

    def get_if_newer(
        self, resource_name: str, destination: PathLike, timestamp: int
    ) -> bool:
        message = (
            f"get_if_newer in {type(self).__name__} is not supported"
            " - performing an unconditional get"
        )
        logger.warning(message)
        self.fire_session_debug(message)
        self.get(resource_name, destination)
        return True

    def put(self, source: PathLike, resource_name: str) -> None:
        source_path = Path(source)
        if not source_path.exists():
            raise ResourceDoesNotExistError(
                f"Specified source file does not exist: {source_path.absolute()}",
                backend_type=self.backend_type,
                operation=PUT,
            )

        resource = Resource.from_file(resource_name, source_path)
        self.fire_put_initiated(resource, source_path)
        self.fire_put_started(resource, source_path)

        target = self.object_url(self.keys.key(resource_name))
        try:
            self._cp(str(source_path.absolute()), target)
        except CommandExecutionError as exc:
            error = translate_error(
                exc, self.backend_type, PUT, f"{source_path} -> {target}"
            )
            self.fire_transfer_error(resource, error, RequestType.PUT, source_path)
            raise error from exc

        self.fire_put_completed(resource, source_path)

    def put_directory(self, source: PathLike, destination: str) -> None:
        """Recursively copy a local directory below ``destination``."""
        source_path = Path(source)
        if not source_path.is_dir():
            raise ResourceDoesNotExistError(
                f"Specified source directory does not exist: {source_path.absolute()}",
                backend_type=self.backend_type,
                operation=PUT_DIRECTORY,
            )

        target = self.object_url(self.keys.directory_key(destination))
        try:
            self._cp(str(source_path.absolute()), target)
        except CommandExecutionError as exc:
            raise translate_error(
                exc, self.backend_type, PUT_DIRECTORY, f"{source_path} -> {target}"
            ) from exc

    def supports_directory_copy(self) -> bool:
        return True
