"""
Main loop to capture template slices with overlay masks.

Takes a neuroimaging template (e.g. an MNI volume) and a folder containing
overlay masks, and generates a series of slice captures showing the overlaying
masks on the template image. For every mask the captures are made transparent
and merged into a single `{mask}_merged.png` strip.
"""

import os
import sys
import argparse
from tqdm import tqdm
from . import __version__
from .config import load_config
from .errors import InvalidAxisError, EmptyMontageError
from .slice_capture import AXES, MRViewRenderer, capture_slices, iterate_coordinates
from .util import (
    ensure_dir, require_tool, mask_basename, find_mask_files, resolve_overlay_path,
    check_volume, make_transparent, collect_slice_files, merge_slices,
)

DESCRIPTION = (
    "This script takes a neuroimaging template (e.g. an MNI volume) and a folder containing overlay masks "
    "as inputs, and generates a series of slice captures showing the overlaying masks under the template image. "
    "The resulting images are stored in the output folder as PNG files."
)

EPILOG = """Requirements:
\t- mrtrix3 (https://mrtrix.readthedocs.io/en/latest/)
\t- imagemagick (https://imagemagick.org/)

Examples:
\t%(prog)s --version
\t%(prog)s /usr/local/fsl/data/standard/MNI152_T1_1mm_brain.nii.gz input_path output_path -66 66 10 0
"""


def main_capture_loop(template_file, input_path, output_path, coordinate_0, coordinate_f, increment, axis,
                      config=None, merge_only=False):
    """
    Capture, key and merge slices for every mask in a directory.

    Parameters
    ----------
    template_file : str
        Template volume (nii or nii.gz).
    input_path : str
        Directory containing the overlay masks.
    output_path : str
        Output directory, created if needed.
    coordinate_0, coordinate_f : int or float
        First and last coordinate of the slice captures.
    increment : int or float
        Step between captures.
    axis : int
        0 for sagittal, 1 for coronal and 2 for axial.
    config : dict, optional
        Configuration as returned by `load_config`. Defaults to the built-in defaults.
    merge_only : bool, optional
        If True, skip rendering and re-merge the slices already in `output_path`.

    Returns
    -------
    list of str
        Paths to the merged images, in processing order.
    """

    if config is None:
        config = load_config()

    # Check inputs before starting any tool
    if axis not in AXES:
        raise InvalidAxisError(axis)
    if not merge_only:
        require_tool(config["mrview_exe"])
        if not iterate_coordinates(coordinate_0, coordinate_f, increment):
            raise ValueError(f"No coordinates between {coordinate_0} and {coordinate_f} with increment {increment}.")
    require_tool(config["convert_exe"])
    require_tool(config["magick_exe"])
    check_volume(template_file)
    mask_files = find_mask_files(input_path)

    # Create output dir if needed
    ensure_dir(output_path)

    renderer = MRViewRenderer.from_config(config)
    merged_files = []

    # Loop
    print(f"Found {len(mask_files)} masks to process.")
    for mask_file in tqdm(mask_files, desc="Processing masks", unit="mask"):
        overlay_basename = mask_basename(mask_file)

        if merge_only:
            slice_files = collect_slice_files(output_path, overlay_basename)
        else:
            input_overlay = resolve_overlay_path(input_path, mask_file)
            check_volume(input_overlay)
            tqdm.write(f"Capturing {AXES[axis]} slices of {overlay_basename}...")
            slice_files = capture_slices(
                template_file, input_overlay, output_path, coordinate_0, coordinate_f, increment, axis,
                renderer=renderer, offsets=config["focus_offsets"], tqdm_handle=tqdm)

        # Remove background of this mask's captures only
        for slice_file in slice_files:
            tqdm.write(f"Removing the background for file {slice_file}")
            make_transparent(slice_file, config["convert_exe"], config["fuzz_percent"],
                             config["background_colour"], tqdm_handle=tqdm)

        merged_path = os.path.join(output_path, f"{overlay_basename}_merged.png")
        try:
            merge_slices(slice_files, merged_path, config["magick_exe"], config["smush"], tqdm_handle=tqdm)
        except EmptyMontageError:
            tqdm.write(f"No slice captures found for {overlay_basename}, skipping mask.")
            continue
        merged_files.append(merged_path)

    return merged_files


def _number(value):
    """Parse a coordinate as int when possible, float otherwise."""
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: '{value}'")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="overlay-slices",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--version", action="version", version=f"Version {__version__}")
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file (created from defaults if missing).")
    parser.add_argument("--merge-only", action="store_true", help="Skip rendering and re-merge the slices already in output_path.")
    parser.add_argument("template_file", type=str, help="Path to the template image file (in nii or nii.gz formats).")
    parser.add_argument("input_path", type=str, help="Path to the input folder containing the overlay masks (in nii format).")
    parser.add_argument("output_path", type=str, help="Path to the output image files (in png format).")
    parser.add_argument("coordinate_0", type=_number, help="Starting coordinate for the slice captures.")
    parser.add_argument("coordinate_f", type=_number, help="Ending coordinate for the slice captures.")
    parser.add_argument("increment", type=_number, help="Number of slices between captures.")
    parser.add_argument("axis", type=int, choices=sorted(AXES), help="0 for sagittal, 1 for coronal and 2 for axial.")
    return parser


def main(argv=None):
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]

    # No arguments: show the help text
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        merged_files = main_capture_loop(
            args.template_file, args.input_path, args.output_path,
            args.coordinate_0, args.coordinate_f, args.increment, args.axis,
            config=config, merge_only=args.merge_only,
        )
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {len(merged_files)} merged images to {args.output_path}")
    # OK
    print("\033[92mDONE\033[0m")
    return 0


if __name__ == "__main__":
    sys.exit(main())
