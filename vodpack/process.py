"""External command execution

Responsibilities:
- Run ffmpeg in its own session so the whole process group can be stopped
- Parse `-progress pipe:1` output into a lazy stream of percentages
- Terminate the process tree when the job is cancelled
- Translate exit codes into CommandExecutionError / JobCancelled
"""

import logging
import queue
import subprocess
import sys
import threading
from collections import deque
from typing import Callable, Iterator, List, Optional

import psutil

from .cancel import CancellationToken
from .config import PROGRESS_LOG_INTERVAL, TERMINATE_GRACE_PERIOD
from .exceptions import CommandExecutionError, JobCancelled

logger = logging.getLogger(__name__)

_END = object()

class ProgressStream:
    """
    Lazy, finite sequence of percent-complete values for one operation.

    The producer publishes without ever blocking and a single consumer
    iterates while the operation runs; each value is delivered once, so
    use the listener to fan out to more observers. Values are clamped to
    [0, 100] and never decrease. A successful run ends with 100.0; a failed
    or cancelled run ends at its last value.
    """

    def __init__(self, listener: Optional[Callable[[float], None]] = None):
        self._queue: "queue.SimpleQueue" = queue.SimpleQueue()
        self._listener = listener
        self._lock = threading.Lock()
        self._last = 0.0
        self._published = False
        self._closed = False

    @property
    def last(self) -> float:
        return self._last

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, percent: float) -> None:
        with self._lock:
            if self._closed:
                return
            value = min(100.0, max(self._last, float(percent)))
            if self._published and value == self._last:
                return
            self._last = value
            self._published = True
            self._queue.put(value)
        if self._listener is not None:
            self._listener(value)

    def close(self, completed: bool = True) -> None:
        """End the stream; completed runs emit the terminal 100.0."""
        if completed:
            self.publish(100.0)
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_END)

    def __iter__(self) -> Iterator[float]:
        while True:
            item = self._queue.get()
            if item is _END:
                # Leave the marker for any other consumer
                self._queue.put(_END)
                return
            yield item

def parse_progress_time(value: str) -> Optional[float]:
    """Parse an ffmpeg out_time value (HH:MM:SS.micro) into seconds."""
    value = value.strip()
    if not value or value.upper() == "N/A" or value.startswith("-"):
        return None
    parts = value.split(":")
    if len(parts) != 3:
        logger.debug("Unexpected out_time format: %s", value)
        return None
    try:
        hours, minutes, seconds = parts
        return int(hours) * 3600 + int(minutes) * 60 + float(seconds)
    except ValueError:
        logger.debug("Error parsing out_time: %s", value)
        return None

def terminate_process_tree(pid: int, grace_period: float = TERMINATE_GRACE_PERIOD) -> None:
    """Terminate a process and all of its children, killing stragglers."""
    try:
        parent = psutil.Process(pid)
        procs = parent.children(recursive=True) + [parent]
    except psutil.NoSuchProcess:
        return
    for proc in procs:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            pass
    _, alive = psutil.wait_procs(procs, timeout=grace_period)
    for proc in alive:
        logger.warning("Process %d ignored SIGTERM; killing", proc.pid)
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass

def _drain(stream, lines: deque) -> None:
    try:
        for line in iter(stream.readline, ""):
            lines.append(line.rstrip())
    finally:
        stream.close()

def run_cmd_with_progress(
    cmd: List[str],
    total_duration: Optional[float] = None,
    progress: Optional[ProgressStream] = None,
    cancel_token: Optional[CancellationToken] = None,
    log_interval: float = PROGRESS_LOG_INTERVAL,
) -> str:
    """
    Run an ffmpeg command, publishing progress as it goes.

    When a progress stream is given the command gets `-progress pipe:1`,
    and each out_time value is turned into a percentage of total_duration.

    Args:
        cmd: Command list (without the -progress flag)
        total_duration: Source duration in seconds; 0/None disables percentages
        progress: Stream receiving percent-complete values
        cancel_token: Job cancellation token
        log_interval: Minimum percentage step between progress log lines

    Returns:
        The tail of the command's stderr

    Raises:
        JobCancelled: If the token was cancelled before or during the run
        CommandExecutionError: If the command could not start or exited non-zero
    """
    if cancel_token is not None:
        cancel_token.raise_if_stopped()

    full_cmd = list(cmd)
    if progress is not None:
        full_cmd += ["-progress", "pipe:1", "-nostats"]
    logger.debug("Running command:\n%s", " \\\n    ".join(full_cmd))

    try:
        process = subprocess.Popen(
            full_cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            start_new_session=sys.platform != "win32",
        )
    except OSError as e:
        raise CommandExecutionError(f"Could not start {full_cmd[0]}: {e}") from e

    handle = None
    if cancel_token is not None:
        handle = cancel_token.register(lambda: terminate_process_tree(process.pid))

    stderr_tail: deque = deque(maxlen=40)
    stderr_thread = threading.Thread(target=_drain, args=(process.stderr, stderr_tail), daemon=True)
    stderr_thread.start()

    last_logged = 0.0
    try:
        for line in iter(process.stdout.readline, ""):
            line = line.strip()
            if progress is None or not line:
                continue
            if line.startswith("out_time=") and total_duration:
                current = parse_progress_time(line.split("=", 1)[1])
                if current is None:
                    continue
                percent = min(99.9, current / total_duration * 100)
                progress.publish(percent)
                if percent - last_logged >= log_interval:
                    logger.debug("Progress: %.1f%%", percent)
                    last_logged = percent
        process.wait()
    except BaseException:
        terminate_process_tree(process.pid)
        raise
    finally:
        process.stdout.close()
        stderr_thread.join()
        if handle is not None:
            cancel_token.unregister(handle)

    output = "\n".join(stderr_tail)
    if cancel_token is not None and cancel_token.cancelled:
        raise JobCancelled(cancel_token.reason or "cancelled", module="process")
    if process.returncode != 0:
        raise CommandExecutionError(
            f"{full_cmd[0]} exited with code {process.returncode}",
            exit_code=process.returncode,
            output=output,
        )
    return output
