from __future__ import annotations

import asyncio
import datetime
import os
import pathlib
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, TypeVar

import msgspec

from tree_context.logging.config import LoggingConfig, StreamType
from tree_context.logging.models import Entry, Log


T = TypeVar('T', bound=Entry)

DEFAULT_TEMPLATE = (
    "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"
)


class LoggerStream:
    """
    Writes log entries for one named logger.

    Entries are rendered with a template to stdout or stderr (chosen by
    ``LoggingConfig``) and, when a path is set, appended to that file as
    msgspec-encoded JSON lines. File writes requested from a thread running
    an event loop are handed to a single writer thread, in order, so the
    loop never waits on disk; ``close`` waits for them to finish.

    ``schedule`` is synchronous and safe to call from any thread, including
    from garbage-collection finalizers and task done callbacks. ``log`` is
    the coroutine form.
    """

    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        path: str | None = None,
    ) -> None:
        if name is None:
            name = "default"

        self._name = name
        self._default_template = template or DEFAULT_TEMPLATE
        self._default_logfile_path: str | None = None
        self._file_executor: ThreadPoolExecutor | None = None

        if path:
            self._default_logfile_path = self._to_logfile_path(path)
            self._file_executor = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix=f"{name}-logfile",
            )

        self._config = LoggingConfig()
        self._file_lock = threading.Lock()
        self._closed = False

    @property
    def name(self):
        return self._name

    @property
    def path(self):
        return self._default_logfile_path

    def schedule(
        self,
        entry: T,
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        self._log(
            entry,
            template=template,
            filter=filter,
            caller=self._find_caller(2),
        )

    async def log(
        self,
        entry: T,
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        await asyncio.to_thread(
            self._log,
            entry,
            caller=self._find_caller(2),
            template=template,
            filter=filter,
        )

    async def batch(
        self,
        entries: list[T],
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        for entry in entries:
            await self.log(
                entry,
                template=template,
                filter=filter,
            )

    def close(self):
        self._closed = True

        if self._file_executor:
            self._file_executor.shutdown(wait=True)

    def _log(
        self,
        entry: T,
        caller: tuple[str, int, str],
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if self._closed:
            return

        if self._config.enabled(self._name, entry.level) is False:
            return

        if filter and filter(entry) is False:
            return

        if template is None:
            template = self._default_template

        filename, line_number, function_name = caller
        thread_id = threading.get_native_id()
        timestamp = datetime.datetime.now(datetime.UTC).isoformat()

        stream = sys.stdout if self._config.output == StreamType.STDOUT else sys.stderr

        try:
            stream.write(
                entry.to_template(
                    template,
                    context={
                        "filename": filename,
                        "function_name": function_name,
                        "line_number": line_number,
                        "thread_id": thread_id,
                        "timestamp": timestamp,
                    },
                )
                + "\n"
            )
            stream.flush()

        except (ValueError, OSError):
            # The interpreter may already have closed the standard streams
            # when finalizers run at exit.
            pass

        if self._default_logfile_path:
            self._schedule_file_write(
                Log(
                    entry=entry,
                    logger=self._name,
                    filename=filename,
                    function_name=function_name,
                    line_number=line_number,
                    thread_id=thread_id,
                    timestamp=timestamp,
                ),
                self._default_logfile_path,
            )

    def _schedule_file_write(
        self,
        log: Log,
        logfile_path: str,
    ):
        try:
            asyncio.get_running_loop()

        except RuntimeError:
            self._write_to_file(log, logfile_path)
            return

        try:
            self._file_executor.submit(
                self._write_to_file,
                log,
                logfile_path,
            )

        except RuntimeError:
            # Executor already shut down, as at interpreter exit.
            self._write_to_file(log, logfile_path)

    def _write_to_file(
        self,
        log: Log,
        logfile_path: str,
    ):
        with self._file_lock:
            with open(logfile_path, "ab") as logfile:
                logfile.write(msgspec.json.encode(log) + b"\n")

    def _to_logfile_path(self, path: str):
        logfile_path = pathlib.Path(path)
        is_logfile = len(logfile_path.suffix) > 0

        if is_logfile is False:
            logfile_path = logfile_path / "logs.json"

        os.makedirs(logfile_path.parent.absolute(), exist_ok=True)

        return str(logfile_path.absolute())

    def _find_caller(self, depth: int):
        """
        Find the stack frame of the caller so that we can note the source
        file name, line number and function name.
        """
        frame = sys._getframe(depth)
        code = frame.f_code

        return (
            code.co_filename,
            frame.f_lineno,
            code.co_name,
        )
