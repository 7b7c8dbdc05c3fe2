from __future__ import annotations

import argparse
import logging
import mimetypes
from pathlib import Path

from pydantic import ValidationError

from toolsia.api.runner import run_tool_sync
from toolsia.app.errors import FeatureLocked, ProcessingError
from toolsia.app.logging import setup_logging
from toolsia.app.settings import load_settings
from toolsia.graph.policies import list_tool_kinds
from toolsia.pipeline.state import SourceImage
from toolsia.tools.exporters.optimize_filesize import size_report


EFFECT_KNOBS = ("exposure", "sharpness", "vibrance", "warmth", "background_blur")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="toolsIA image tools")
    parser.add_argument("tool", choices=list_tool_kinds(), help="Tool to run")
    parser.add_argument("input", type=Path, help="Source image (JPEG, PNG or WebP)")
    parser.add_argument("output", type=Path, nargs="?", help="Where to write the artifact")
    parser.add_argument("--unlocked", action="store_true", help="Use the unlocked tier limits")
    parser.add_argument("--level", type=int, default=75, help="Enhancement level 30..100")
    parser.add_argument("--quality", type=int, default=80, help="Compression quality 10..100")
    effects = parser.add_argument_group("camera effects (enhance, unlocked tier)")
    for knob in EFFECT_KNOBS:
        effects.add_argument(f"--{knob.replace('_', '-')}", type=int, metavar="0..100")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    s = load_settings()
    setup_logging(s.log_level)
    logger = logging.getLogger("toolsia.cli")

    mime, _ = mimetypes.guess_type(args.input.name)
    source = SourceImage(
        data=args.input.read_bytes(),
        mime=mime or "application/octet-stream",
        filename=args.input.name,
    )

    effects = {k: getattr(args, k) for k in EFFECT_KNOBS if getattr(args, k) is not None}

    def _progress(stage: str, percent: int) -> None:
        logger.info("%s %d%%", stage, percent)

    try:
        result = run_tool_sync(
            source,
            args.tool,
            args.unlocked,
            enhancement_level=args.level,
            quality_percent=args.quality,
            effects=effects or None,
            on_progress=_progress,
            settings=s,
        )
    except ValidationError as exc:
        logger.error("Invalid options: %s", exc)
        return 2
    except FeatureLocked as exc:
        logger.error("%s", exc)
        return 2
    except ProcessingError as exc:
        logger.error("%s: %s", exc.code, exc)
        return 1

    out_path = args.output or args.input.with_name(result.suggested_filename or "output")
    out_path.write_bytes(result.artifact_bytes)
    report = size_report(
        source_bytes=result.source_bytes,
        output_bytes=result.output_bytes,
        mime=result.mime_type,
    )
    logger.info("Wrote %s (%dx%d) %s", out_path, result.width_px, result.height_px, report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
