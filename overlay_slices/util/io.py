"""
File system helpers: output directory setup, mask discovery, input volume
checks and external tool lookup.
"""

import os
import shutil
import nibabel as nib
from ..errors import MissingToolError

VOLUME_EXTENSIONS = (".nii", ".nii.gz")


def ensure_dir(path):
    """Create the directory (and parents) if it does not yet exist."""
    if not os.path.isdir(path):
        os.makedirs(path)
    return path


def require_tool(name):
    """Return the full path of an executable on PATH, or raise MissingToolError."""
    exe = shutil.which(name)
    if exe is None:
        raise MissingToolError(name)
    return exe


def mask_basename(path):
    """Base name of a mask file, i.e. the file name up to the first dot."""
    return os.path.basename(path).split(".")[0]


def find_mask_files(input_path):
    """
    List the mask volumes in a directory.

    Only NIfTI files are considered and each base name is returned once
    (e.g. `left.nii` and `left.nii.gz` count as one mask). Files are returned
    in sorted order.

    Parameters
    ----------
    input_path : str
        Directory containing the overlay masks.

    Returns
    -------
    list of str
        Full paths to the mask files.
    """

    if not os.path.isdir(input_path):
        raise FileNotFoundError(f"Input directory not found: {input_path}")

    mask_files = []
    seen = set()
    for name in sorted(os.listdir(input_path)):
        path = os.path.join(input_path, name)
        if not os.path.isfile(path) or not name.endswith(VOLUME_EXTENSIONS):
            continue
        base = mask_basename(name)
        if base in seen:
            continue
        seen.add(base)
        mask_files.append(path)
    return mask_files


def resolve_overlay_path(input_path, mask_file):
    """
    Path of the overlay volume to render for a mask file.

    The plain `{base}.nii` is preferred; if it does not exist the mask file
    itself is used (e.g. a compressed `.nii.gz`).
    """
    nii_path = os.path.join(input_path, f"{mask_basename(mask_file)}.nii")
    if os.path.exists(nii_path):
        return nii_path
    return mask_file


def check_volume(path):
    """
    Check that a file exists and holds a (at least) 3D NIfTI volume.

    Only the header is read, the image data is not loaded.

    Returns
    -------
    tuple
        Shape of the volume.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"The input file does not exist: {path}")
    try:
        img = nib.load(path)
    except Exception as e:
        raise ValueError(f"Could not read volume '{path}': {e}") from e
    shape = img.shape
    if len(shape) < 3:
        raise ValueError(f"Expected a 3D volume in '{path}', got shape {shape}")
    return shape
