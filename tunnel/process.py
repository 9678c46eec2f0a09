"""
Tunnel subprocess supervision - start, liveness, output capture, shutdown.
"""

import subprocess
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

import psutil

from .exceptions import ProcessManagementError

# lines kept for latest_output(); older output is dropped once nobody reads it
OUTPUT_BUFFER_LINES = 500


class TunnelProcess:
    """Runs a tunnel binary and captures its combined output without blocking."""

    def __init__(self, app):
        """
        Initialize tunnel process wrapper.

        Args:
            app: Flask application instance (used for logging)
        """
        self.app = app
        self.process: Optional[subprocess.Popen] = None
        self.command: List[str] = []
        self._buffer: Deque[str] = deque(maxlen=OUTPUT_BUFFER_LINES)
        self._lock = threading.Lock()
        self._reader: Optional[threading.Thread] = None

    def start(self, command: List[str], output_callback: Optional[Callable[[str], None]] = None) -> 'TunnelProcess':
        """
        Spawn the tunnel binary.

        Output is read line by line on a daemon thread, buffered for
        latest_output() and handed to output_callback as it arrives.

        Args:
            command: Argument list, binary first
            output_callback: Optional callable invoked with each output chunk

        Returns:
            self

        Raises:
            ProcessManagementError: If the binary cannot be executed
        """
        if self.running():
            self.app.logger.warning(f"{self.command[0]} process already running, not starting duplicate")
            return self

        self.command = list(command)

        try:
            self.process = subprocess.Popen(
                self.command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,  # scrape stderr together with stdout
                stdin=subprocess.DEVNULL,
                text=True,
                errors='replace',
                bufsize=1,
            )
        except FileNotFoundError:
            raise ProcessManagementError(f"Tunnel binary '{self.command[0]}' not found")
        except OSError as e:
            raise ProcessManagementError(f"Failed to start {self.command[0]}: {e}")

        self._reader = threading.Thread(
            target=self._drain,
            args=(self.process.stdout, output_callback),
            daemon=True,
        )
        self._reader.start()

        self.app.logger.info(f"Started {self.command[0]} process (PID: {self.process.pid})")
        return self

    def _drain(self, stream, output_callback):
        for chunk in iter(stream.readline, ''):
            with self._lock:
                self._buffer.append(chunk)
            if output_callback:
                output_callback(chunk)
        stream.close()

    def running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    @property
    def exit_code(self) -> Optional[int]:
        if self.process is None:
            return None
        return self.process.poll()

    def latest_output(self) -> str:
        """Return output produced since the previous call (at most the last OUTPUT_BUFFER_LINES lines)."""
        with self._lock:
            output = ''.join(self._buffer)
            self._buffer.clear()
        return output

    def terminate(self, timeout: int = 10) -> bool:
        """
        Stop the tunnel process and any children it spawned.

        Sends SIGTERM to the whole tree and waits up to timeout seconds,
        then force-kills whatever is left.

        Args:
            timeout: Maximum seconds to wait for graceful shutdown

        Returns:
            True if everything exited gracefully, False if force-kill was needed
        """
        if self.process is None:
            return True

        if self.process.poll() is not None:
            self.app.logger.info(f"Process already exited with code {self.process.returncode}")
            return True

        try:
            parent = psutil.Process(self.process.pid)
            procs = parent.children(recursive=True) + [parent]
        except psutil.NoSuchProcess:
            return True

        for proc in procs:
            try:
                proc.terminate()
            except psutil.NoSuchProcess:
                continue

        _, alive = psutil.wait_procs(procs, timeout=timeout)

        for proc in alive:
            self.app.logger.warning(
                f"Process {proc.pid} did not exit gracefully after {timeout} seconds, force-killing"
            )
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                continue

        try:
            self.process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self.app.logger.error(f"Failed to reap {self.command[0]} process {self.process.pid}")

        self.app.logger.info(f"Stopped {self.command[0]} process")
        return not alive
