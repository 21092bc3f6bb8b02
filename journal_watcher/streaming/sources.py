"""
Line sources for the ingestion pipeline.

A line source yields text lines in emission order and stops at end of
stream. Read failures are reported as SourceError.
"""

import logging
import subprocess
from typing import IO, Iterator, List, Optional

from ..errors import SourceError

logger = logging.getLogger(__name__)


class LineSource:
    """Base class for iterable, closeable line sources."""

    def __iter__(self) -> Iterator[str]:
        return self.lines()

    def lines(self) -> Iterator[str]:
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self) -> "LineSource":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class StreamSource(LineSource):
    """Reads lines from an open text stream such as stdin or a file."""

    def __init__(self, stream: IO[str], name: str = "<stream>"):
        self.stream = stream
        self.name = name

    def lines(self) -> Iterator[str]:
        try:
            for line in self.stream:
                yield line.rstrip("\r\n")
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise SourceError(f"Failed reading from {self.name}: {e}") from e
        logger.info(f"End of stream reached for {self.name}")

    def close(self):
        self.stream.close()


class JournalSource(LineSource):
    """
    Follows the journal of a systemd unit.

    Runs `journalctl -u <unit> -o cat -f` and yields its output lines.
    """

    def __init__(self, unit: str, follow: bool = True, journalctl: str = "journalctl"):
        """
        Initialize journal source.

        Args:
            unit: systemd unit whose journal is tailed
            follow: Keep following new entries (-f)
            journalctl: journalctl executable
        """
        self.unit = unit
        self.follow = follow
        self.journalctl = journalctl
        self._process: Optional[subprocess.Popen] = None
        self._closed = False

    @property
    def command(self) -> List[str]:
        command = [self.journalctl, "-u", self.unit, "-o", "cat"]
        if self.follow:
            command.append("-f")
        return command

    def _spawn(self) -> subprocess.Popen:
        try:
            process = subprocess.Popen(
                self.command,
                stdout=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise SourceError(f"Cannot start {self.journalctl}: {e}") from e
        logger.info(f"Following journal of unit '{self.unit}' (pid {process.pid})")
        return process

    def lines(self) -> Iterator[str]:
        if self._closed:
            logger.info(f"Journal source for unit '{self.unit}' closed before reading")
            return
        if self._process is not None:
            raise SourceError(f"Journal of unit '{self.unit}' is already being read")
        self._process = self._spawn()
        # close() may have run while the process was starting
        if self._closed:
            self._terminate(self._process)
            return

        try:
            for line in self._process.stdout:
                yield line.rstrip("\r\n")
        except (OSError, ValueError) as e:
            if not self._closed:
                raise SourceError(f"Failed reading journal of unit '{self.unit}': {e}") from e

        returncode = self._process.wait()
        if returncode != 0 and not self._closed:
            raise SourceError(
                f"{self.journalctl} for unit '{self.unit}' exited with status {returncode}"
            )
        logger.info(f"Journal stream for unit '{self.unit}' ended")

    def close(self):
        """Stop the journalctl process."""
        self._closed = True
        if self._process is not None:
            self._terminate(self._process)

    @staticmethod
    def _terminate(process: subprocess.Popen):
        if process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=5.0)
        except subprocess.TimeoutExpired:
            logger.warning(f"journalctl (pid {process.pid}) did not exit, killing it")
            process.kill()
            process.wait()
