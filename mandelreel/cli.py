from __future__ import annotations

import argparse
from contextlib import ExitStack
from typing import Any, Dict, Optional

from mandelreel.config import ConfigError, load_config, normalise_config
from mandelreel.jobs import generate_jobs
from mandelreel.pipeline import ExecutorFactory, FrameWriter, render_sequence
from mandelreel.renderers.palette import SCHEMES
from mandelreel.util.logging_setup import LEVELS, configure_package_logging, get_logger, level_from_name, log_session
from mandelreel.util.manifest import build_manifest, write_manifest
from mandelreel.video.ffmpeg import AssemblyResult, FfmpegAssembler, VideoAssembler

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelreel", description="Render a Mandelbrot deep zoom in parallel and encode it with ffmpeg.")
    p.add_argument("max_iter", type=int, help="Iteration budget per pixel (positive integer).")
    p.add_argument("zoom_start", type=int, help="First frame index (>= 0).")
    p.add_argument("zoom_end", type=int, help="Last frame index, inclusive (>= zoom_start).")
    p.add_argument("zoom_factor", type=float, help="Per-frame zoom multiplier (> 1).")

    p.add_argument("--config", type=str, default=None, help="JSON file with optional render settings.")
    p.add_argument("--width", type=int, default=None, help="Frame width in pixels (default 1200).")
    p.add_argument("--height", type=int, default=None, help="Frame height in pixels (default 1200).")
    p.add_argument("--scheme", dest="color_scheme", type=str, default=None, choices=sorted(SCHEMES), help="Color scheme.")
    p.add_argument("--invert", action="store_true", default=None, help="Invert frame colors.")
    p.add_argument("--frames-dir", dest="frames_dir", type=str, default=None, help="Directory for PNG frames (default frames).")
    p.add_argument("--output", dest="output_video", type=str, default=None, help="Output MP4 file (default mandelbrot_zoom.mp4).")
    p.add_argument("--workers", type=int, default=None, help="Worker processes (default: CPU count).")
    p.add_argument("--no-video", action="store_true", help="Render frames only, skip ffmpeg.")
    p.add_argument("--manifest", type=str, default=None, help="Write a JSON run manifest to this path.")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    p.add_argument("--log-level", type=str, default="INFO", choices=LEVELS, help="Log level.")
    p.add_argument("--log-file", type=str, default=None, help="Rotating log file path. File logging is off by default.")
    return p

def _merge_settings(args: argparse.Namespace) -> Dict[str, Any]:
    settings = load_config(args.config)
    for key in ("width", "height", "color_scheme", "invert", "frames_dir", "output_video", "workers"):
        value = getattr(args, key)
        if value is not None:
            settings[key] = value
    for key in ("max_iter", "zoom_start", "zoom_end", "zoom_factor"):
        settings[key] = getattr(args, key)
    return settings

def _assembly_record(assembly: Optional[AssemblyResult]) -> Optional[Dict[str, Any]]:
    if assembly is None:
        return None
    return {"output_path": assembly.output_path, "returncode": assembly.returncode, "message": assembly.message}

def main(
    argv: Optional[list] = None,
    *,
    assembler: Optional[VideoAssembler] = None,
    writer: Optional[FrameWriter] = None,
    executor_factory: Optional[ExecutorFactory] = None,
) -> int:
    args = build_arg_parser().parse_args(argv)
    log_level = level_from_name(args.log_level)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None

    with ExitStack() as stack:
        try:
            log_queue = stack.enter_context(log_session(level=log_level, log_file=log_file))
        except OSError as e:
            logger = configure_package_logging(level=log_level)
            logger.error("Cannot open log file %s: %s", log_file, e)
            return EXIT_CONFIG
        logger = get_logger()

        try:
            cfg = normalise_config(_merge_settings(args))
        except ConfigError as e:
            logger.error("Configuration error: %s", e)
            return EXIT_CONFIG

        pool_kwargs: Dict[str, Any] = {"writer": writer, "log_level": log_level, "progress": not args.no_progress}
        if executor_factory is None:
            pool_kwargs["log_queue"] = log_queue
        else:
            pool_kwargs["executor_factory"] = executor_factory

        try:
            stats = render_sequence(cfg=cfg, jobs=generate_jobs(cfg), **pool_kwargs)
        except OSError as e:
            logger.error("Cannot prepare frames directory %s: %s", cfg.frames_dir, e)
            return EXIT_FAILED

        exit_code = EXIT_OK if stats.frames_failed == 0 else EXIT_FAILED
        assembly = None

        if stats.frames_failed:
            logger.error("%s of %s frames failed; skipping video assembly. Rendered frames are kept in %s",
                         stats.frames_failed, stats.total_frames, cfg.frames_dir)
        elif args.no_video:
            logger.info("Video assembly skipped (--no-video)")
        else:
            video = assembler or FfmpegAssembler(prefix=cfg.frame_prefix)
            assembly = video.assemble(cfg.frames_dir, cfg.output_video)
            if not assembly.ok:
                logger.error("Video assembly failed (exit status %s): %s. Frames are kept in %s",
                             assembly.returncode, assembly.message, cfg.frames_dir)
                exit_code = EXIT_FAILED

        if args.manifest:
            manifest = build_manifest(config=cfg.to_dict(), stats=stats.as_dict(), assembly=_assembly_record(assembly))
            try:
                write_manifest(args.manifest, manifest)
            except OSError as e:
                logger.error("Cannot write run manifest %s: %s", args.manifest, e)
                exit_code = EXIT_FAILED
            else:
                logger.info("Run manifest written: %s", args.manifest)

        if exit_code == EXIT_OK:
            logger.info("Run finished: success")
        else:
            logger.error("Run finished: %s", "failure" if assembly is not None or not stats.frames_failed else stats.status)
        return exit_code
