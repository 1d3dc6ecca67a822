"""
Compile scheduler - concurrent compilation of one target's files.

Every file of a target is an independent job. All jobs are submitted to a
thread pool before any result is awaited; by default the pool has one
worker per file, so parallelism equals file count. Spawning and waiting on
the compiler process is the only blocking point inside a job.

A failing job never cancels its siblings: the scheduler waits for every job
to finish, then raises the first failure (in submission order). Objects
produced by the successful siblings stay on disk and are reused by the next
build if they are still up to date.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .callbacks import CompileProgressCallback, NullCallback
from .compiler import CompileState, InputFile, OutputFile
from .errors import BuildError

logger = logging.getLogger(__name__)


@dataclass
class CompilationJob:
    """Single compilation job.

    Attributes:
        job_id: Identifier, unique within one scheduler run
        input_file: The compilation unit
        state: Current state (UNCHECKED until a worker picks the job up)
        decision: Staleness outcome, SKIPPED or COMPILING, once checked
        result: Object produced on success
        error: Failure raised by the job
    """

    job_id: str
    input_file: InputFile
    state: CompileState = CompileState.UNCHECKED
    decision: Optional[CompileState] = None
    result: Optional[OutputFile] = None
    error: Optional[BuildError] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    def duration(self) -> Optional[float]:
        """Get job duration in seconds."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return None


class CompilationScheduler:
    """Runs the compile jobs of one target concurrently."""

    def __init__(self, max_workers: Optional[int] = None, callback: Optional[CompileProgressCallback] = None):
        """Initialize the scheduler.

        Args:
            max_workers: Concurrency cap (default: one worker per file)
            callback: Receives every job state transition
        """
        self.max_workers = max_workers
        self.callback: CompileProgressCallback = callback if callback is not None else NullCallback()
        self.jobs: List[CompilationJob] = []
        self.jobs_lock = threading.Lock()

    def _set_state(self, job: CompilationJob, state: CompileState, detail: str = "") -> None:
        with self.jobs_lock:
            job.state = state
        try:
            self.callback.on_state(job.input_file.path, state, detail)
        except Exception as e:
            logger.error(f"Progress callback error: {e}", exc_info=True)

    def run(self, files: Sequence[InputFile]) -> List[OutputFile]:
        """Compile every file, reusing up-to-date objects.

        Args:
            files: Compilation units of one target

        Returns:
            One OutputFile per input, in input order

        Raises:
            BuildError: The first job failure, after every job has finished
        """
        self.jobs = [CompilationJob(job_id=f"compile-{i}", input_file=f) for i, f in enumerate(files)]
        if not self.jobs:
            return []

        workers = len(self.jobs)
        if self.max_workers is not None:
            workers = max(1, min(self.max_workers, workers))
        logger.debug(f"Scheduling {len(self.jobs)} compile jobs on {workers} workers")

        for job in self.jobs:
            self._set_state(job, CompileState.UNCHECKED)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="compile") as executor:
            futures = [executor.submit(self._execute_job, job) for job in self.jobs]
            wait(futures)
        # Surface unexpected (non-build) exceptions from workers.
        for future in futures:
            future.result()

        stats = self.get_statistics()
        logger.debug(f"Compile stats: {stats}")

        for job in self.jobs:
            if job.error is not None:
                raise job.error
        return [job.result for job in self.jobs if job.result is not None]

    def _execute_job(self, job: CompilationJob) -> None:
        job.start_time = time.time()

        def record(decision: CompileState) -> None:
            with self.jobs_lock:
                job.decision = decision
            self._set_state(job, decision)

        try:
            result = job.input_file.compile(on_decision=record)
        except BuildError as e:
            with self.jobs_lock:
                job.error = e
                job.end_time = time.time()
            logger.debug(f"Job {job.job_id} failed: {e}")
            self._set_state(job, CompileState.FAILED, str(e))
            return

        with self.jobs_lock:
            job.result = result
            job.end_time = time.time()
        self._set_state(job, CompileState.COMPLETED)

    def get_statistics(self) -> dict[str, int]:
        """Job counts by outcome."""
        with self.jobs_lock:
            return {
                "total_jobs": len(self.jobs),
                "compiled": sum(1 for j in self.jobs if j.decision == CompileState.COMPILING),
                "skipped": sum(1 for j in self.jobs if j.decision == CompileState.SKIPPED),
                "completed": sum(1 for j in self.jobs if j.state == CompileState.COMPLETED),
                "failed": sum(1 for j in self.jobs if j.state == CompileState.FAILED),
            }

    def get_failed_jobs(self) -> List[CompilationJob]:
        with self.jobs_lock:
            return [j for j in self.jobs if j.state == CompileState.FAILED]
