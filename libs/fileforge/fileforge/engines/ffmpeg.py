"""Video recompression and container conversion with FFmpeg/FFprobe."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from uuid import uuid4

from fileforge.exceptions import EngineError, EngineUnavailableError
from fileforge.engines.base import EngineContext, ExternalEngine
from fileforge.pipeline.strategy import Strategy, StrategyKind, VideoQuality, video_quality_for
from fileforge.utils.binaries import resolve_binary, resolve_ffmpeg_bin
from fileforge.utils.sizing import AUDIO_BITRATE_KBPS, target_bitrate_kbps

logger = logging.getLogger(__name__)

# container -> (video codec, audio codec)
CONTAINER_CODECS: dict[str, tuple[str, str]] = {
    "mp4": ("libx264", "aac"),
    "mov": ("libx264", "aac"),
    "avi": ("libx264", "aac"),
    "webm": ("libvpx-vp9", "libopus"),
}

# libvpx has no -preset; map the x264 preset onto its speed knob.
_VP9_CPU_USED: dict[str, str] = {"fast": "4", "medium": "2", "slow": "1"}


def _codecs(container: str) -> tuple[str, str]:
    return CONTAINER_CODECS.get(container, CONTAINER_CODECS["mp4"])


def build_crf_args(
    ffmpeg_bin: str,
    input_path: Path,
    output_path: Path,
    *,
    container: str,
    quality: VideoQuality,
) -> list[str]:
    vcodec, acodec = _codecs(container)
    args = [ffmpeg_bin, "-y", "-i", str(input_path), "-c:v", vcodec, "-crf", str(quality.crf)]
    if vcodec == "libx264":
        args += ["-preset", quality.preset]
    else:
        args += ["-b:v", "0", "-deadline", "good", "-cpu-used", _VP9_CPU_USED.get(quality.preset, "2")]
    args += ["-c:a", acodec, "-b:a", f"{AUDIO_BITRATE_KBPS}k", str(output_path)]
    return args


def build_two_pass_args(
    ffmpeg_bin: str,
    input_path: Path,
    output_path: Path,
    *,
    container: str,
    bitrate_kbps: int,
    passlog_prefix: Path,
) -> tuple[list[str], list[str]]:
    """Pass 1 analyses into the pass log and discards its output; pass 2 writes the result."""
    vcodec, acodec = _codecs(container)
    common = [
        ffmpeg_bin,
        "-y",
        "-i",
        str(input_path),
        "-c:v",
        vcodec,
        "-b:v",
        f"{bitrate_kbps}k",
    ]
    first = [
        *common,
        "-pass",
        "1",
        "-passlogfile",
        str(passlog_prefix),
        "-an",
        "-f",
        "null",
        os.devnull,
    ]
    second = [
        *common,
        "-pass",
        "2",
        "-passlogfile",
        str(passlog_prefix),
        "-c:a",
        acodec,
        "-b:a",
        f"{AUDIO_BITRATE_KBPS}k",
        str(output_path),
    ]
    return first, second


def build_reformat_args(ffmpeg_bin: str, input_path: Path, output_path: Path) -> list[str]:
    return [ffmpeg_bin, "-y", "-i", str(input_path), str(output_path)]


def build_probe_duration_args(ffprobe_bin: str, input_path: Path) -> list[str]:
    return [
        ffprobe_bin,
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        str(input_path),
    ]


class FFmpegEngine(ExternalEngine):
    name = "ffmpeg"
    kinds = frozenset({StrategyKind.VIDEO_RECOMPRESS, StrategyKind.VIDEO_REFORMAT})

    def __init__(self, ffmpeg_bin: str = "ffmpeg", ffprobe_bin: str = "ffprobe") -> None:
        self.ffmpeg_bin = resolve_ffmpeg_bin(ffmpeg_bin)
        self.ffprobe_bin = resolve_binary(ffprobe_bin, "ffprobe")

    def required_binaries(self) -> dict[str, str | None]:
        return {"ffmpeg": self.ffmpeg_bin}

    def optional_binaries(self) -> dict[str, str | None]:
        # Only needed for size-targeted (two-pass) compression.
        return {"ffprobe": self.ffprobe_bin}

    async def probe_duration(self, input_path: Path, ctx: EngineContext) -> float:
        if not self.ffprobe_bin:
            raise EngineUnavailableError(
                self.name, "Processing engine is not available", detail="ffprobe not found"
            )
        result = await self._exec(build_probe_duration_args(self.ffprobe_bin, input_path), ctx)
        raw = result.stdout.decode(errors="ignore").strip()
        try:
            duration = float(raw)
        except ValueError as exc:
            raise EngineError(self.name, "Could not read video duration", detail=f"ffprobe: {raw!r}") from exc
        if duration <= 0:
            raise EngineError(self.name, "Could not read video duration", detail=f"ffprobe: {raw!r}")
        return duration

    async def run(
        self,
        strategy: Strategy,
        input_path: Path,
        output_path: Path,
        ctx: EngineContext,
    ) -> None:
        self.ensure_available()
        ffmpeg = str(self.ffmpeg_bin)

        if strategy.kind is StrategyKind.VIDEO_REFORMAT:
            await self._exec(build_reformat_args(ffmpeg, input_path, output_path), ctx)
            return

        if not strategy.max_size_mb:
            quality = strategy.video_quality or video_quality_for(None)
            await self._exec(
                build_crf_args(
                    ffmpeg,
                    input_path,
                    output_path,
                    container=strategy.target_format,
                    quality=quality,
                ),
                ctx,
            )
            return

        duration = await self.probe_duration(input_path, ctx)
        bitrate = target_bitrate_kbps(strategy.max_size_mb, duration)
        if bitrate <= 0:
            raise EngineError(
                self.name,
                "Requested size is too small for this video",
                detail=f"maxSize={strategy.max_size_mb}MB duration={duration}s",
            )
        prefix = ctx.work_dir / f"2pass-{uuid4().hex}"
        first, second = build_two_pass_args(
            ffmpeg,
            input_path,
            output_path,
            container=strategy.target_format,
            bitrate_kbps=bitrate,
            passlog_prefix=prefix,
        )
        logger.info(
            "two-pass encode input=%s bitrate=%dk duration=%.2fs", input_path.name, bitrate, duration
        )
        try:
            await self._exec(first, ctx, cwd=str(ctx.work_dir))
            await self._exec(second, ctx, cwd=str(ctx.work_dir))
        finally:
            for leftover in ctx.work_dir.glob(f"{prefix.name}*"):
                leftover.unlink(missing_ok=True)
