"""Parallel orchestration of per-glyph distance field generation.

Each generation request is independent and dispatched to a bounded thread
pool. Workers write their result at their own index; the orchestrator waits
until every call completed or the first failure is observed.

Key components:
- DistanceFieldGenerator: Protocol for the single-glyph generation service
- GlyphGenerationRunner: Fail-fast batch orchestrator with per-call timeout
"""

import os
import time
import traceback
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Protocol

from sdfatlas.domain import GenerationRequest, GlyphBitmap
from sdfatlas.exceptions import GenerationError, GenerationTimeoutError
from sdfatlas.utils import ProcessingLogger

# Polling interval while waiting for calls that have not started yet
_POLL_SECONDS = 0.05


class DistanceFieldGenerator(Protocol):
    """Generates the distance field bitmap of a single glyph.

    Implementations raise a GenerationError subtype on failure, and
    GlyphMissingError when the font has no glyph for the codepoint.
    Implementations must be safe to call from several threads.
    """

    def generate(self, request: GenerationRequest) -> GlyphBitmap:
        """Generate the bitmap and metrics for one request."""
        ...


def check_bitmap(request: GenerationRequest, bitmap: GlyphBitmap) -> None:
    """Reject generator results that do not match their request.

    Zero-size bitmaps are accepted; glyphs without outline (e.g. space)
    have no pixels.

    Raises:
        GenerationError: If the bitmap is malformed
    """
    if bitmap.codepoint != request.codepoint:
        raise GenerationError(
            request.codepoint,
            f"generator returned codepoint {bitmap.codepoint}",
        )
    if bitmap.is_malformed():
        raise GenerationError(
            request.codepoint,
            f"malformed bitmap: declared {bitmap.width}x{bitmap.height}x{bitmap.channels}, "
            f"pixel array shape {tuple(bitmap.pixels.shape)}",
        )
    if not bitmap.is_empty() and bitmap.channels != request.channel_count:
        raise GenerationError(
            request.codepoint,
            f"expected {request.channel_count} channels, got {bitmap.channels}",
        )


class GlyphGenerationRunner:
    """Runs a batch of generation requests against a generator.

    The batch is all or nothing: the first failure raises GenerationError,
    pending calls are cancelled and calls still running are left to finish
    in the background with their results discarded.

    Example:
        runner = GlyphGenerationRunner(generator, max_workers=4, timeout=30.0)
        bitmaps = runner.run(requests)
    """

    def __init__(
        self,
        generator: DistanceFieldGenerator,
        max_workers: int | None = None,
        timeout: float | None = None,
        processing_logger: ProcessingLogger | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            generator: Single-glyph generation service
            max_workers: Worker thread count (None = CPU count)
            timeout: Timeout of a single call in seconds (None = no timeout)
            processing_logger: Optional logger recording progress and stats
        """
        self.generator = generator
        self.max_workers = max_workers or os.cpu_count() or 1
        self.timeout = timeout
        self.processing_logger = processing_logger

    def _call(
        self,
        index: int,
        request: GenerationRequest,
        start_times: list[float | None],
        durations: list[float],
        results: list[GlyphBitmap | None],
    ) -> None:
        """Worker body: generate one glyph and store it at its index."""
        start = time.monotonic()
        start_times[index] = start
        try:
            bitmap = self.generator.generate(request)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(request.codepoint, str(e) or type(e).__name__) from e
        check_bitmap(request, bitmap)
        durations[index] = (time.monotonic() - start) * 1000
        results[index] = bitmap

    def run(
        self,
        requests: Sequence[GenerationRequest],
        progress_callback: Callable[[int, int, int], None] | None = None,
    ) -> dict[int, GlyphBitmap]:
        """Generate all requests in parallel.

        Args:
            requests: Generation requests, one per codepoint
            progress_callback: Optional callback(completed, total, codepoint)

        Returns:
            Mapping of codepoint to bitmap, in request order

        Raises:
            GenerationError: If any call fails, returns a malformed bitmap
                or exceeds the timeout
        """
        total = len(requests)
        start_times: list[float | None] = [None] * total
        durations: list[float] = [0.0] * total
        results: list[GlyphBitmap | None] = [None] * total

        executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="sdfatlas-gen",
        )
        futures: dict[Future[None], int] = {}
        try:
            for index, request in enumerate(requests):
                future = executor.submit(
                    self._call, index, request, start_times, durations, results
                )
                futures[future] = index

            pending = set(futures)
            completed = 0
            while pending:
                done, pending = wait(
                    pending,
                    timeout=self._wait_timeout(pending, futures, start_times),
                    return_when=FIRST_COMPLETED,
                )
                for future in sorted(done, key=futures.__getitem__):
                    index = futures[future]
                    request = requests[index]
                    error = future.exception()
                    if error is not None:
                        self._log_error(request.codepoint, error)
                        raise error

                    bitmap = results[index]
                    assert bitmap is not None
                    completed += 1
                    if self.processing_logger is not None:
                        self.processing_logger.log_glyph_complete(
                            codepoint=request.codepoint,
                            width=bitmap.width,
                            height=bitmap.height,
                            duration_ms=durations[index],
                        )
                    if progress_callback is not None:
                        progress_callback(completed, total, request.codepoint)

                self._check_timeouts(pending, futures, start_times, requests)

        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise

        executor.shutdown(wait=True)

        bitmaps: dict[int, GlyphBitmap] = {}
        for request, bitmap in zip(requests, results, strict=True):
            assert bitmap is not None
            bitmaps[request.codepoint] = bitmap
        return bitmaps

    def _wait_timeout(
        self,
        pending: set[Future[None]],
        futures: dict[Future[None], int],
        start_times: list[float | None],
    ) -> float | None:
        """Time to wait before the next running call may exceed its deadline."""
        if self.timeout is None:
            return None
        now = time.monotonic()
        remaining = [
            start + self.timeout - now
            for start in (start_times[futures[f]] for f in pending)
            if start is not None
        ]
        if not remaining:
            return _POLL_SECONDS
        return max(0.0, min(min(remaining), self.timeout))

    def _check_timeouts(
        self,
        pending: set[Future[None]],
        futures: dict[Future[None], int],
        start_times: list[float | None],
        requests: Sequence[GenerationRequest],
    ) -> None:
        """Raise for the first running call past its deadline."""
        if self.timeout is None:
            return
        now = time.monotonic()
        for future in sorted(pending, key=futures.__getitem__):
            start = start_times[futures[future]]
            if start is not None and not future.done() and now - start >= self.timeout:
                request = requests[futures[future]]
                error = GenerationTimeoutError(request.codepoint, self.timeout)
                self._log_error(request.codepoint, error)
                raise error

    def _log_error(self, codepoint: int, error: BaseException) -> None:
        if self.processing_logger is None or not isinstance(error, Exception):
            return
        tb = "".join(traceback.format_exception(error))
        self.processing_logger.log_glyph_error(codepoint, error, traceback=tb)
