"""
Slice captures of a template volume with an overlay mask, rendered by MRtrix3's
`mrview` in batch mode.

For every sampled coordinate along the chosen axis `mrview` is started once,
grabs a single frame and exits. The capture is then renamed from mrview's
`{prefix}0000.png` convention to `{mask}_slice_{NN}.png`.
"""

import os
import math
import subprocess
from .errors import InvalidAxisError, CaptureNotFoundError
from .util.io import mask_basename, require_tool

AXES = {0: "sagittal", 1: "coronal", 2: "axial"}
FOCUS_OFFSETS = (-1, -18, 18)

# mrview appends a 4-digit frame number to the capture prefix
CAPTURE_SUFFIX = "0000.png"


def slice_label(cnt):
    """Two-digit label for counters below 10, plain decimal otherwise."""
    if cnt < 10:
        return f"0{cnt}"
    return str(cnt)


def focal_point(coordinate, axis, offsets=FOCUS_OFFSETS):
    """
    3D focus for a slice: the swept axis takes `coordinate`, the other two
    keep their fixed offset.

    Parameters
    ----------
    coordinate : int or float
        Position along the swept axis.
    axis : int
        0 (sagittal), 1 (coronal) or 2 (axial).
    offsets : sequence of 3 numbers
        Focus used for the axes that are not swept.

    Returns
    -------
    tuple
        (x, y, z) focus.
    """
    if axis not in AXES:
        raise InvalidAxisError(axis)
    focus = list(offsets)
    focus[axis] = coordinate
    return tuple(focus)


def iterate_coordinates(start, end, step):
    """
    Coordinates from `start` towards `end` (inclusive) in steps of `step`.

    Behaves like `seq start step end`: the list is empty when `step` points
    away from `end`. Values are computed as `start + k * step` so floats do
    not accumulate rounding errors.
    """
    if step == 0:
        raise ValueError("Increment must be non-zero.")
    n = math.floor((end - start) / step + 1e-9)
    if n < 0:
        return []
    return [start + k * step for k in range(n + 1)]


def format_coordinate(value):
    """Format a coordinate for the command line, without a trailing `.0`."""
    if float(value).is_integer():
        return str(int(value))
    return f"{float(value):g}"


def canonical_capture_path(rendered_path):
    """`.../{base}_slice_07-0000.png` -> `.../{base}_slice_07.png`"""
    return rendered_path[:-len("-" + CAPTURE_SUFFIX)] + ".png"


class MRViewRenderer:
    """
    Renders single slices of a template with an overlay through `mrview`.

    The overlay is loaded twice: positive values with one colourmap
    (`threshold_min`) and negative values with another (`threshold_max`).
    """

    def __init__(self, mrview_exe="mrview", fov=245, opacity=0.7,
                 positive_colourmap=1, negative_colourmap=2, threshold=0.00000001):
        self.mrview_exe = mrview_exe
        self.fov = fov
        self.opacity = opacity
        self.positive_colourmap = positive_colourmap
        self.negative_colourmap = negative_colourmap
        self.threshold = threshold

    @classmethod
    def from_config(cls, config):
        return cls(
            mrview_exe=config["mrview_exe"], fov=config["fov"], opacity=config["opacity"],
            positive_colourmap=config["positive_colourmap"],
            negative_colourmap=config["negative_colourmap"],
            threshold=config["threshold"],
        )

    def build_command(self, template, overlay, focus, plane, output_dir, prefix):
        """Argument list for one batch capture."""
        return [
            self.mrview_exe, template,
            "-fov", str(self.fov),
            "-plane", str(plane),
            "-focus", ",".join(format_coordinate(c) for c in focus),
            "-overlay.load", overlay,
            "-overlay.colourmap", str(self.positive_colourmap),
            "-overlay.threshold_min", repr(float(self.threshold)),
            "-overlay.opacity", str(self.opacity),
            "-overlay.load", overlay,
            "-overlay.colourmap", str(self.negative_colourmap),
            "-overlay.threshold_max", repr(-float(self.threshold)),
            "-overlay.opacity", str(self.opacity),
            "-noannotations",
            "-capture.folder", output_dir,
            "-capture.prefix", prefix,
            "-capture.grab",
            "-exit",
        ]

    def capture_slice(self, template, overlay, focus, plane, output_dir, prefix, tqdm_handle=None):
        """
        Capture one frame and return the path mrview wrote it to.

        Raises
        ------
        RuntimeError
            If mrview exits with a non-zero code.
        CaptureNotFoundError
            If mrview did not write `{output_dir}/{prefix}0000.png`.
        """

        # Define logging function
        log = tqdm_handle.write if tqdm_handle else print

        exe = require_tool(self.mrview_exe)
        command = self.build_command(template, overlay, focus, plane, output_dir, prefix)
        command[0] = exe

        log("Running: " + " ".join(command))
        result = subprocess.run(command, capture_output=True, text=True)
        if result.returncode != 0:
            log(f"Error running mrview: {result.stderr}")
            raise RuntimeError(f"mrview failed with exit code {result.returncode}.")

        rendered_path = os.path.join(output_dir, prefix + CAPTURE_SUFFIX)
        if not os.path.exists(rendered_path):
            raise CaptureNotFoundError(f"mrview did not produce the expected capture: {rendered_path}")
        return rendered_path


def capture_slices(template, overlay, output_dir, coordinate_0, coordinate_f, increment, axis,
                   renderer=None, offsets=FOCUS_OFFSETS, tqdm_handle=None):
    """
    Capture one slice per coordinate for a single overlay mask.

    Parameters
    ----------
    template : str
        Template volume (e.g. MNI152 T1).
    overlay : str
        Overlay mask volume.
    output_dir : str
        Existing directory the captures are written to.
    coordinate_0, coordinate_f, increment : int or float
        Coordinate range, see `iterate_coordinates`.
    axis : int
        0 (sagittal), 1 (coronal) or 2 (axial).
    renderer : MRViewRenderer, optional
        Renderer to use. Defaults to `MRViewRenderer()`.
    offsets : sequence of 3 numbers
        Focus for the axes that are not swept.
    tqdm_handle : tqdm, optional
        tqdm progress bar handle for logging output

    Returns
    -------
    list of str
        Paths of the `{mask}_slice_{NN}.png` files, in capture order.
    """

    if axis not in AXES:
        raise InvalidAxisError(axis)
    if renderer is None:
        renderer = MRViewRenderer()

    # Define logging function
    log = tqdm_handle.write if tqdm_handle else print

    b_name = mask_basename(overlay)
    slice_files = []
    for cnt, coordinate in enumerate(iterate_coordinates(coordinate_0, coordinate_f, increment)):
        label = slice_label(cnt)
        focus = focal_point(coordinate, axis, offsets)
        rendered_path = renderer.capture_slice(
            template, overlay, focus, axis, output_dir, f"{b_name}_slice_{label}-", tqdm_handle=tqdm_handle)

        # Rename to canonical name
        slice_path = canonical_capture_path(rendered_path)
        os.replace(rendered_path, slice_path)
        log(f"Captured {AXES[axis]} slice {format_coordinate(coordinate)} of {b_name}: {slice_path}")
        slice_files.append(slice_path)

    return slice_files
