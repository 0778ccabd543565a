"""Candidate prober.

Fills in missing format and dimensions of icon candidates by fetching the
first bytes of each image and decoding its header. Probing is best effort:
a candidate whose bytes cannot be fetched or decoded is returned unchanged.
"""

import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from repo_icons.clients.exceptions import FetchError
from repo_icons.clients.http import HttpClient
from repo_icons.domain.models import IconCandidate, IconFormat
from repo_icons.logging import get_logger
from repo_icons.utils.urls import InvalidUrlError, parse_data_url

from .decoder import ImageInfo, decode_image_header
from .exceptions import ProbeError

logger = get_logger(__name__, component="prober")

DEFAULT_MAX_BYTES = 64 * 1024


class Prober:
    """Resolves unknown candidate metadata with bounded concurrency.

    Network fetches run on the event loop, limited by a semaphore; header
    decoding runs on a small thread pool so large payloads never block the
    loop. Each probe has its own timeout, measured from the moment it gets
    a concurrency slot.

    Attributes:
        concurrency: Maximum probes running at once
        timeout: Per-probe budget in seconds
        max_bytes: Bytes fetched from each image
    """

    def __init__(
        self,
        http: HttpClient,
        concurrency: int = 4,
        timeout: float = 5.0,
        max_bytes: int = DEFAULT_MAX_BYTES,
        decode_workers: int = 2,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got: {concurrency}")
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got: {timeout}")
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got: {max_bytes}")

        self.http = http
        self.concurrency = concurrency
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._executor = ThreadPoolExecutor(
            max_workers=decode_workers, thread_name_prefix="icon-decode"
        )
        # Created lazily so the semaphore binds to the running loop
        self._semaphore: Optional[asyncio.Semaphore] = None

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _slots(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.concurrency)
        return self._semaphore

    async def probe_all(self, candidates: Sequence[IconCandidate]) -> List[IconCandidate]:
        """Probe candidates concurrently, preserving input order."""
        if not candidates:
            return []
        return list(await asyncio.gather(*(self.probe(c) for c in candidates)))

    async def probe(self, candidate: IconCandidate) -> IconCandidate:
        """Return ``candidate`` with unknown format/dimensions filled in.

        Fully resolved candidates are returned as they are. Any failure to
        fetch or decode leaves the candidate unchanged; nothing is raised.
        """
        if candidate.is_resolved:
            return candidate

        async with self._slots():
            start = time.monotonic()
            try:
                probed = await asyncio.wait_for(self._probe_once(candidate), self.timeout)
            except asyncio.TimeoutError:
                self._log_failure(candidate, f"timed out after {self.timeout} seconds", "timeout")
                return candidate
            except (ProbeError, FetchError, InvalidUrlError) as e:
                self._log_failure(candidate, str(e), type(e).__name__)
                return candidate
            except Exception as e:
                logger.warning(
                    f"Unexpected error probing {candidate.url}: {e}",
                    extra={
                        "event": "probe.unexpected_error",
                        "url": candidate.url,
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                return candidate

        logger.debug(
            "Probed candidate",
            extra={
                "event": "probe.completed",
                "url": candidate.url,
                "format": probed.format.value if probed.format else None,
                "width": probed.width,
                "height": probed.height,
                "duration_ms": int((time.monotonic() - start) * 1000),
            },
        )
        return probed

    async def _probe_once(self, candidate: IconCandidate) -> IconCandidate:
        if candidate.is_data_url:
            content_type, payload = parse_data_url(candidate.url)
        else:
            content_type, payload = await self.http.get_bytes(candidate.url, self.max_bytes)

        loop = asyncio.get_running_loop()
        info: Optional[ImageInfo] = await loop.run_in_executor(
            self._executor, decode_image_header, payload
        )

        declared = IconFormat.from_mime(content_type)
        if info is None:
            if declared is None:
                raise ProbeError(
                    f"Could not decode image header ({len(payload)} bytes)", url=candidate.url
                )
            return candidate.with_probe_result(format=declared)

        image_format = info.format
        if image_format is IconFormat.UNKNOWN and declared is not None:
            image_format = declared
        return candidate.with_probe_result(
            format=image_format, width=info.width, height=info.height
        )

    def _log_failure(self, candidate: IconCandidate, reason: str, error_type: str) -> None:
        logger.info(
            f"Probe failed for {candidate.url}: {reason}",
            extra={
                "event": "probe.failed",
                "url": candidate.url,
                "error_type": error_type,
            },
        )
