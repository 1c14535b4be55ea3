import argparse
import logging
import sys
from pathlib import Path

from dotpic.colour import get_scheme, list_schemes
from dotpic.config import Auto, ColorMode, Manual, RenderConfig, parse_dither, parse_sampling
from dotpic.converter import fit_height, frames_from_image, image_to_density, load_image
from dotpic.density import get_density_set
from dotpic.errors import DotpicError
from dotpic.prerender import PrerenderedAnimation
from dotpic.terminal import TerminalWriter, format_grid, get_terminal_size
from dotpic.timing import DEFAULT_FPS, FrameTimer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render an image as Unicode braille dots")
    parser.add_argument("image", help="Path to input image")
    parser.add_argument(
        "-s", "--size", type=int, default=None, help="Output width in cells (default: terminal width)"
    )
    parser.add_argument(
        "--height", type=int, default=None, help="Output height in cells (default: keep aspect ratio)"
    )
    parser.add_argument(
        "-d",
        "--dither",
        default="none",
        help="Dither method: none, floyd-steinberg, atkinson or bayer[-2|-4|-8|-16] (default: none)",
    )
    parser.add_argument(
        "-t", "--threshold", type=int, default=None, help="Manual threshold 0-255 (default: Otsu's method)"
    )
    parser.add_argument("-b", "--brightness", type=float, default=1.0, help="Brightness factor 0-2 (default: 1.0)")
    parser.add_argument("--contrast", type=float, default=1.0, help="Contrast factor 0-2 (default: 1.0)")
    parser.add_argument("-g", "--gamma", type=float, default=1.0, help="Gamma 0.1-3 (default: 1.0)")
    parser.add_argument("-c", "--colour", action="store_true", default=False, help="Enable truecolor ANSI output")
    parser.add_argument(
        "--grayscale", action="store_true", default=False, help="Colour cells with the 256-colour gray ramp"
    )
    parser.add_argument(
        "--scheme", default=None, help=f"Tint cells by brightness: {', '.join(list_schemes())}"
    )
    parser.add_argument(
        "--sampling", default="average", help="Cell colour: average, dominant or center (default: average)"
    )
    parser.add_argument(
        "--density",
        default=None,
        help="Print one ascii, simple, blocks or braille ramp character per cell instead of dots",
    )
    parser.add_argument(
        "--fps", type=int, default=None, help="Playback rate for animated images (default: frame durations)"
    )
    parser.add_argument("--loop", action="store_true", default=False, help="Loop animated images")
    parser.add_argument("--save", type=Path, default=None, help="Write the rendered frames to a .dpic file")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Log debug output to stderr")
    return parser


def _frame_rate(durations: list[int | None], fps: int | None) -> int:
    if fps is not None:
        return fps
    known = [d for d in durations if d]
    if not known:
        return DEFAULT_FPS
    return round(1000 * len(known) / sum(known))


def _color_mode(args: argparse.Namespace) -> ColorMode:
    if args.grayscale:
        return ColorMode.GRAYSCALE
    if args.colour:
        return ColorMode.COLOR
    return ColorMode.MONOCHROME


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr)

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"File not found: {image_path}", file=sys.stderr)
        return 1

    try:
        config = RenderConfig(
            dither=parse_dither(args.dither),
            threshold=Auto() if args.threshold is None else Manual(args.threshold),
            brightness=args.brightness,
            contrast=args.contrast,
            gamma=args.gamma,
            color_mode=_color_mode(args),
            sampling=parse_sampling(args.sampling),
            color_scheme=get_scheme(args.scheme) if args.scheme else None,
        )
        width = args.size if args.size is not None else get_terminal_size()[0]
        height = args.height if args.height is not None else fit_height(load_image(image_path), width)
        if args.density is not None:
            print(image_to_density(image_path, width, height, get_density_set(args.density), config))
            return 0

        animation = PrerenderedAnimation()
        durations = []
        for grid, duration in frames_from_image(image_path, width, height, config):
            animation.add_frame(grid)
            durations.append(duration)
        animation.frame_rate = _frame_rate(durations, args.fps)
    except DotpicError as exc:
        print(f"dotpic: {exc}", file=sys.stderr)
        return 1

    if args.save is not None:
        animation.save(args.save)

    if animation.frame_count == 1:
        print(format_grid(animation.frames[0], colour=config.emits_colour, gray256=args.grayscale))
        return 0

    writer = TerminalWriter(colour=config.emits_colour, gray256=args.grayscale)
    writer.begin()
    try:
        animation.play(writer, FrameTimer(animation.frame_rate), loop=args.loop)
    except KeyboardInterrupt:
        pass
    finally:
        writer.end()
    return 0


if __name__ == "__main__":
    sys.exit(main())
