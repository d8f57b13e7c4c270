"""
Utility package for the slice capture pipeline.

This package is organized into focused modules:
- io: Output directory, mask discovery and input checks
- imagemagick: Background keying and merging of slice captures
"""

from .io import ensure_dir, require_tool, mask_basename, find_mask_files, resolve_overlay_path, check_volume
from .imagemagick import run_tool, transparent_fraction, make_transparent, collect_slice_files, merge_slices

__all__ = [
    # I/O
    'ensure_dir', 'require_tool', 'mask_basename', 'find_mask_files', 'resolve_overlay_path', 'check_volume',
    # ImageMagick
    'run_tool', 'transparent_fraction', 'make_transparent', 'collect_slice_files', 'merge_slices',
]
