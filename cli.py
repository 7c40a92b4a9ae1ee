#!/usr/bin/env python3
"""Command-line interface for pose overlay."""

import sys
from pathlib import Path
from typing import Optional

import click

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from pose_overlay import __version__
from pose_overlay.config import DEFAULT_CONFIG_PATH, OverlayConfig, load_config


def _build_config(ctx: click.Context, **overrides) -> OverlayConfig:
    """Merge the YAML config with command-line overrides and set up logging."""
    from pose_overlay.utils.logging_config import setup_logging

    try:
        config = OverlayConfig.from_dict(ctx.obj["config"], **overrides)
    except (TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    log_level = "DEBUG" if ctx.obj["verbose"] else config.log_level
    setup_logging(level=log_level, log_file=config.log_file)
    return config


@click.group()
@click.option(
    "--config",
    "-c",
    default=DEFAULT_CONFIG_PATH,
    help="Path to configuration file",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool) -> None:
    """Pose Overlay.

    Run a pretrained pose-estimation model over a video file or camera and
    draw keypoints, skeleton and joint angles on every frame.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config)
    ctx.obj["verbose"] = verbose


def _backend_options(func):
    """Options shared by commands that run a model."""
    options = [
        click.option(
            "--backend",
            "-b",
            type=click.Choice(["movenet", "mediapipe"]),
            default=None,
            help="Pose estimation backend",
        ),
        click.option(
            "--model",
            "-m",
            "model_type",
            type=click.Choice(["singlepose/lightning", "singlepose/thunder"]),
            default=None,
            help="MoveNet variant (ignored by the mediapipe backend)",
        ),
        click.option(
            "--model-url",
            default=None,
            help=(
                "MoveNet model URL or path; with the mediapipe backend, "
                "path of the .task model file"
            ),
        ),
        click.option(
            "--threshold",
            "-t",
            "score_threshold",
            type=click.FloatRange(0.0, 1.0),
            default=None,
            help="Minimum keypoint confidence",
        ),
        click.option(
            "--max-frames",
            "-n",
            type=click.IntRange(min=1),
            default=None,
            help="Stop after this many frames",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@cli.command()
@click.argument("source")
@_backend_options
@click.option(
    "--style",
    "-s",
    type=click.Choice(["movenet", "body_detection"]),
    default=None,
    help="Overlay style preset",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    default=None,
    help="Write the annotated video to this path",
)
@click.option(
    "--no-display",
    is_flag=True,
    help="Do not open a display window",
)
@click.option(
    "--canvas-only",
    is_flag=True,
    help="Draw on a blank canvas instead of the video",
)
@click.pass_context
def run(
    ctx: click.Context,
    source: str,
    backend: Optional[str],
    model_type: Optional[str],
    model_url: Optional[str],
    score_threshold: Optional[float],
    max_frames: Optional[int],
    style: Optional[str],
    output_path: Optional[str],
    no_display: bool,
    canvas_only: bool,
) -> None:
    """Overlay poses on SOURCE (video path or camera index)."""
    from pose_overlay.pipeline.render_loop import create_overlay_loop

    config = _build_config(
        ctx,
        backend=backend,
        model_type=model_type,
        model_url=model_url,
        score_threshold=score_threshold,
        max_frames=max_frames,
        style=style,
        output_path=output_path,
        display=False if no_display else None,
        canvas_only=canvas_only or None,
    )

    click.echo(f"Running {config.backend} on: {source}")
    if config.display:
        click.echo("Press 'q' in the video window to stop")

    try:
        stats = create_overlay_loop(source, config).run()
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"Frames processed: {stats.frames_processed}")
    click.echo(f"Frames with pose: {stats.frames_with_pose}")
    click.echo(f"Frames dropped: {stats.frames_dropped}")
    click.echo(f"Mean inference: {stats.mean_inference_ms:.1f} ms")
    if config.output_path:
        click.echo(f"Annotated video: {config.output_path}")


@cli.command()
@click.argument("source")
@_backend_options
@click.option(
    "--output",
    "-o",
    "export_path",
    required=True,
    help="Destination file (.csv or .json)",
)
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default=None,
    help="Export format (defaults to the output file suffix)",
)
@click.pass_context
def angles(
    ctx: click.Context,
    source: str,
    backend: Optional[str],
    model_type: Optional[str],
    model_url: Optional[str],
    score_threshold: Optional[float],
    max_frames: Optional[int],
    export_path: str,
    fmt: Optional[str],
) -> None:
    """Export per-frame keypoints and joint angles of SOURCE."""
    from pose_overlay.pipeline.export import ResultRecorder, resolve_format
    from pose_overlay.pipeline.render_loop import create_overlay_loop
    from pose_overlay.utils.logging_config import ProgressLogger, get_logger
    from pose_overlay.utils.video_utils import get_video_info, parse_source

    try:
        export_format = resolve_format(export_path, fmt or "")
    except ValueError as e:
        raise click.ClickException(str(e))

    config = _build_config(
        ctx,
        backend=backend,
        model_type=model_type,
        model_url=model_url,
        score_threshold=score_threshold,
        max_frames=max_frames,
        display=False,
        output_path="",
    )

    info = get_video_info(parse_source(source))
    total = info.total_frames if info else None
    if total and config.max_frames:
        total = min(total, config.max_frames)
    progress = ProgressLogger(get_logger(__name__), total, description="Measuring angles")

    recorder = ResultRecorder()

    def on_frame(output):
        recorder(output)
        progress.update()

    try:
        stats = create_overlay_loop(source, config, on_frame=on_frame).run()
        saved = recorder.save(export_path, export_format)
    except ValueError as e:
        raise click.ClickException(str(e))
    progress.finish()

    click.echo(f"Frames with pose: {stats.frames_with_pose}/{stats.frames_processed}")
    click.echo(f"Exported to: {saved}")


@cli.command()
@click.argument("source")
def info(source: str) -> None:
    """Show information about a video file or camera."""
    from pose_overlay.utils.video_utils import get_video_info, parse_source

    video_info = get_video_info(parse_source(source))
    if video_info is None:
        raise click.ClickException(f"Could not open video: {source}")

    click.echo(f"Source: {video_info.path}")
    click.echo(f"  Resolution: {video_info.width}x{video_info.height}")
    click.echo(f"  FPS: {video_info.fps:.2f}")
    click.echo(f"  Frames: {video_info.total_frames}")
    click.echo(f"  Duration: {video_info.duration_seconds:.2f} s")
    click.echo(f"  Codec: {video_info.codec}")


@cli.command()
def version() -> None:
    """Show version information."""
    click.echo("Pose Overlay")
    click.echo(f"Version: {__version__}")


if __name__ == "__main__":
    cli()
