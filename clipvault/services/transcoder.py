"""Transcoding gateway: the boundary to ffmpeg/ffprobe.

The asset service only depends on the TranscodingGateway protocol. The
FFmpegGateway adapter runs the tools as asyncio subprocesses and turns any
non-zero exit, unparsable output or timeout into GatewayFailureError
carrying the tail of the tool's stderr. Task cancellation kills the child
process and propagates as asyncio.CancelledError unchanged; whether to
retry is the caller's decision.
"""

import asyncio
import logging
import math
from pathlib import Path
from typing import Protocol, runtime_checkable

from clipvault.errors import GatewayFailureError, ValidationFailedError

logger = logging.getLogger(__name__)

# Keep error messages readable when ffmpeg dumps a full log to stderr
STDERR_TAIL_CHARS = 2000


@runtime_checkable
class TranscodingGateway(Protocol):
    """Capability the asset service needs from a transcoding engine."""

    async def probe_duration(self, path: Path) -> float:
        """Return the media duration in seconds."""
        ...

    async def trim(
        self, input_path: Path, output_path: Path, start_seconds: float, end_seconds: float
    ) -> None:
        """Write [start, end) of input to output. Rejects out-of-range bounds."""
        ...

    async def concat(self, manifest_path: Path, output_path: Path) -> None:
        """Concatenate manifest entries into output without re-encoding."""
        ...


class FFmpegGateway:
    """TranscodingGateway backed by the ffmpeg and ffprobe binaries."""

    def __init__(
        self,
        ffmpeg_binary: str = "ffmpeg",
        ffprobe_binary: str = "ffprobe",
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            ffmpeg_binary: ffmpeg executable name or path.
            ffprobe_binary: ffprobe executable name or path.
            timeout_seconds: Optional wall-clock limit per invocation.
        """
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary
        self.timeout_seconds = timeout_seconds

    async def probe_duration(self, path: Path) -> float:
        stdout = await self._run(
            [
                self.ffprobe_binary,
                "-v",
                "error",
                "-show_entries",
                "format=duration",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                str(path),
            ],
            action="probe",
        )
        text = stdout.strip()
        try:
            duration = float(text)
        except ValueError as e:
            raise GatewayFailureError(
                f"ffprobe returned no usable duration for {path.name}: {text[:200]!r}"
            ) from e
        if not math.isfinite(duration) or duration < 0:
            raise GatewayFailureError(
                f"ffprobe returned invalid duration {duration} for {path.name}"
            )
        return duration

    async def trim(
        self, input_path: Path, output_path: Path, start_seconds: float, end_seconds: float
    ) -> None:
        duration = await self.probe_duration(input_path)
        if (
            start_seconds < 0
            or end_seconds <= start_seconds
            or start_seconds > duration
            or end_seconds > duration
        ):
            raise ValidationFailedError(
                "Invalid start or end time: ensure they are within the "
                f"media duration ({duration:.3f}s)."
            )

        await self._run(
            [
                self.ffmpeg_binary,
                "-hide_banner",
                "-nostdin",
                "-n",
                "-ss",
                _fmt_seconds(start_seconds),
                "-i",
                str(input_path),
                "-t",
                _fmt_seconds(end_seconds - start_seconds),
                str(output_path),
            ],
            action="trim",
        )

    async def concat(self, manifest_path: Path, output_path: Path) -> None:
        await self._run(
            [
                self.ffmpeg_binary,
                "-hide_banner",
                "-nostdin",
                "-n",
                "-f",
                "concat",
                "-safe",
                "0",
                "-i",
                str(manifest_path),
                "-c",
                "copy",
                str(output_path),
            ],
            action="concat",
        )

    async def _run(self, args: list[str], *, action: str) -> str:
        """Run one tool invocation and return its stdout.

        Raises:
            GatewayFailureError: On launch failure, non-zero exit or timeout.
        """
        logger.info("Running %s: %s", action, " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise GatewayFailureError(f"Failed to launch {args[0]} for {action}: {e}") from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            await _kill(process)
            raise GatewayFailureError(
                f"{action} timed out after {self.timeout_seconds}s"
            ) from e
        except asyncio.CancelledError:
            await _kill(process)
            raise

        if process.returncode != 0:
            stderr = stderr_bytes.decode("utf-8", errors="replace").strip()
            logger.warning(
                "%s failed with exit code %s: %s",
                action,
                process.returncode,
                stderr[-STDERR_TAIL_CHARS:],
            )
            raise GatewayFailureError(
                f"Failed to {action} media (exit code {process.returncode}): "
                f"{stderr[-STDERR_TAIL_CHARS:]}"
            )

        return stdout_bytes.decode("utf-8", errors="replace")


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()


def _fmt_seconds(value: float) -> str:
    return f"{value:.3f}"
