"""
ImageMagick post-processing of the slice captures: background keying and
merging all slices of a mask into one strip.
"""

import os
import re
import subprocess
import numpy as np
from PIL import Image
from .io import require_tool
from ..errors import EmptyMontageError


def run_tool(command, tqdm_handle=None):
    """Echo and run an external command, raising RuntimeError on failure."""

    # Define logging function
    log = tqdm_handle.write if tqdm_handle else print

    log("Running: " + " ".join(str(c) for c in command))
    result = subprocess.run(command, capture_output=True, text=True)
    if result.returncode != 0:
        log(f"Error running {os.path.basename(command[0])}: {result.stderr}")
        raise RuntimeError(f"{os.path.basename(command[0])} failed with exit code {result.returncode}.")
    return result


def transparent_fraction(path):
    """Fraction of fully transparent pixels in an image (0 for images without alpha)."""
    with Image.open(path) as img:
        if "A" not in img.getbands():
            return 0.0
        alpha = np.asarray(img.getchannel("A"))
    return float(np.mean(alpha == 0))


def make_transparent(input_file, convert_exe="convert", fuzz_percent=10, colour="black", tqdm_handle=None):
    """
    Remove a (near-)uniform background colour and save as a transparent PNG.

    Pixels within `fuzz_percent` of `colour` become fully transparent. The
    output has the input's name with the extension replaced by `.png`, so a
    PNG input is overwritten in place.

    Parameters
    ----------
    input_file : str
        Image to process.
    convert_exe : str
        ImageMagick `convert` executable.
    fuzz_percent : float
        Colour matching tolerance in percent.
    colour : str
        Background colour to key out.
    tqdm_handle : tqdm, optional
        tqdm progress bar handle for logging output

    Returns
    -------
    str
        Path to the written PNG.
    """

    # Define logging function
    log = tqdm_handle.write if tqdm_handle else print

    # Check tool and input
    exe = require_tool(convert_exe)
    if not os.path.isfile(input_file):
        raise FileNotFoundError(f"The input file does not exist: {input_file}")

    output_file = os.path.splitext(input_file)[0] + ".png"
    run_tool([exe, input_file, "-fuzz", f"{fuzz_percent}%", "-transparent", colour, output_file],
             tqdm_handle=tqdm_handle)

    fraction = transparent_fraction(output_file)
    log(f"Successfully removed {colour} from {input_file} and saved as {output_file} "
        f"({fraction:.1%} transparent)")
    return output_file


def collect_slice_files(output_dir, mask_base):
    """
    Find the slice captures of one mask in the output directory.

    Only exact `{mask_base}_slice_{NN}.png` names match, so masks sharing a
    prefix (`left`, `left2`) and merged images are never picked up.

    Returns
    -------
    list of str
        Paths sorted by slice counter.
    """
    pattern = re.compile(rf"^{re.escape(mask_base)}_slice_(\d+)\.png$")
    matches = []
    for name in os.listdir(output_dir):
        m = pattern.match(name)
        if m:
            matches.append((int(m.group(1)), os.path.join(output_dir, name)))
    return [path for _, path in sorted(matches)]


def merge_slices(slice_files, merged_path, magick_exe="magick", smush=-30, tqdm_handle=None):
    """
    Concatenate slice captures horizontally into one image.

    Images are centred vertically and overlap by `-smush` pixels on a
    transparent background.

    Parameters
    ----------
    slice_files : list of str
        Slice captures, left to right.
    merged_path : str
        Output PNG.
    magick_exe : str
        ImageMagick `magick` executable.
    smush : int
        Spacing between images; negative values overlap them.
    tqdm_handle : tqdm, optional
        tqdm progress bar handle for logging output

    Returns
    -------
    str
        `merged_path`
    """

    # Define logging function
    log = tqdm_handle.write if tqdm_handle else print

    if not slice_files:
        raise EmptyMontageError(f"No slice captures to merge into {merged_path}")
    exe = require_tool(magick_exe)

    run_tool([exe, *slice_files, "-background", "none", "-gravity", "Center", "+smush", str(smush), merged_path],
             tqdm_handle=tqdm_handle)
    log(f"Merged {len(slice_files)} slices into {merged_path}")
    return merged_path
