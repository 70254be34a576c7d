"""Resolve a submission and stream its logs, once or continuously.

Snapshot mode copies stdout (and optionally stderr) once and prints it.
Follow mode runs one capture thread and one tail thread per stream until
the cancellation event is set, e.g. by Ctrl+C.
"""

import logging
import tempfile
import threading
from pathlib import Path
from typing import Callable, List, Optional

from sparktail.cluster_api import ClusterAPI, DriverState
from sparktail.cli.utils.capture import STDERR, STDOUT, CaptureMode, LogStream, StreamCapture
from sparktail.cli.utils.locator import Location, SubmissionLocator, SubmissionNotFound
from sparktail.cli.utils.logs import TailWatcher
from sparktail.cli.utils.remote_files import READ_CHUNK_SIZE, RemoteFileReader


logger = logging.getLogger(__name__)

# Called with (stream name, text). Text is a whole buffer in snapshot mode
# and one newline-terminated line in follow mode.
OutputCallback = Callable[[str, str], None]


class SubmissionStillQueued(Exception):
    """The submission is queued and the caller is not following."""
    pass


class SessionInterrupted(Exception):
    """The session was cancelled before it finished."""
    pass


class LogSession:
    """Runs one log retrieval for one submission."""

    def __init__(
        self,
        api: ClusterAPI,
        output: OutputCallback,
        chunk_size: int = READ_CHUNK_SIZE,
        poll_interval: float = 1.0,
        tail_lines: int = 10,
        tail_interval: float = 0.2,
        queued_interval: float = 1.0,
        stop_event: Optional[threading.Event] = None,
    ):
        self.locator = SubmissionLocator(api)
        self.reader = RemoteFileReader(api)
        self.output = output
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval
        self.tail_lines = tail_lines
        self.tail_interval = tail_interval
        self.queued_interval = queued_interval
        self.stop_event = stop_event or threading.Event()
        self._output_lock = threading.Lock()
        self._errors: List[BaseException] = []

    def cancel(self) -> None:
        self.stop_event.set()

    def _emit(self, stream_name: str, text: str) -> None:
        with self._output_lock:
            self.output(stream_name, text)

    def resolve_and_stream(self, submission_id: str, follow: bool = False, show_stderr: bool = False) -> None:
        """Locate the submission and print or follow its logs.

        Returns normally only when a snapshot has been printed.

        Raises:
            SubmissionNotFound: Dispatcher reports NOT_FOUND
            SubmissionStillQueued: Queued and not following
            ResolutionError: Task, agent or executor lookup failed
            TransportError: Any HTTP call failed
            SessionInterrupted: Cancelled while waiting or streaming
        """
        try:
            location = self._resolve(submission_id, follow)
            names = [STDOUT, STDERR] if show_stderr else [STDOUT]
            with tempfile.TemporaryDirectory(prefix="sparktail-") as tmp:
                streams = [LogStream(name, location, Path(tmp) / name) for name in names]
                for stream in streams:
                    stream.buffer_path.touch()
                if follow:
                    self._follow(streams)
                else:
                    self._snapshot(streams)
        except KeyboardInterrupt:
            self.cancel()
            raise SessionInterrupted("Interrupted")

    def _resolve(self, submission_id: str, follow: bool) -> Location:
        state = self.locator.fetch_state(submission_id)
        if state is DriverState.NOT_FOUND:
            raise SubmissionNotFound(f"Submission {submission_id} not found")

        if state is DriverState.QUEUED:
            if not follow:
                raise SubmissionStillQueued(f"Submission {submission_id} is still queued")
            logger.info("Submission %s is queued, waiting for it to start", submission_id)
            while state is DriverState.QUEUED:
                if self.stop_event.wait(self.queued_interval):
                    raise SessionInterrupted("Interrupted while waiting for the submission to start")
                state = self.locator.fetch_state(submission_id)
            if state is DriverState.NOT_FOUND:
                raise SubmissionNotFound(f"Submission {submission_id} not found")

        return self.locator.locate_in_cluster(submission_id)

    def _snapshot(self, streams: List[LogStream]) -> None:
        capture = StreamCapture(self.reader, stop_event=self.stop_event)
        for stream in streams:
            capture.capture(stream, CaptureMode.SNAPSHOT)

        # stderr first, then stdout
        for stream in sorted(streams, key=lambda s: s.name != STDERR):
            self._emit(stream.name, stream.buffer_path.read_text(encoding="utf-8", errors="replace"))

    def _run_task(self, target: Callable[[], None]) -> Callable[[], None]:
        def runner() -> None:
            try:
                target()
            except BaseException as exc:  # re-raised from the main thread
                logger.debug("Log task failed: %s", exc)
                self._errors.append(exc)
                self.cancel()
        return runner

    def _tail(self, stream: LogStream, ready: threading.Event) -> None:
        # Start from the content that existed when following began
        while not ready.wait(self.tail_interval):
            if self.stop_event.is_set():
                return

        watcher = TailWatcher(
            stream.buffer_path,
            lines=self.tail_lines,
            poll_interval=self.tail_interval,
            stop_event=self.stop_event,
        )
        for line in watcher.watch():
            self._emit(stream.name, line + "\n")

    def _follow(self, streams: List[LogStream]) -> None:
        capture = StreamCapture(
            self.reader,
            chunk_size=self.chunk_size,
            interval=self.poll_interval,
            stop_event=self.stop_event,
        )
        threads = []
        for stream in streams:
            ready = threading.Event()
            threads.append(threading.Thread(
                target=self._run_task(
                    lambda s=stream, r=ready: capture.capture(s, CaptureMode.INCREMENTAL, ready=r)
                ),
                name=f"capture-{stream.name}",
                daemon=True,
            ))
            threads.append(threading.Thread(
                target=self._run_task(lambda s=stream, r=ready: self._tail(s, r)),
                name=f"tail-{stream.name}",
                daemon=True,
            ))
        for thread in threads:
            thread.start()

        try:
            # Short joins keep the main thread responsive to Ctrl+C
            while any(thread.is_alive() for thread in threads):
                for thread in threads:
                    thread.join(timeout=0.1)
        finally:
            self.cancel()
            # A capture blocked in an HTTP call finishes within the request timeout
            grace = max(self.poll_interval, self.tail_interval) + 1.0
            for thread in threads:
                thread.join(timeout=grace)

        if self._errors:
            raise self._errors[0]
        raise SessionInterrupted("Stopped following")
