"""
overlay_slices
==============

Batch slice captures of overlay masks on top of a neuroimaging template.

For every mask volume in an input directory, a series of slices along one
anatomical axis is rendered with MRtrix3's `mrview`, the black background is
made transparent with ImageMagick, and all slices of the mask are merged into
one horizontal strip (`{mask}_merged.png`).

Usage
-----
- The main entry point is `main_capture_loop.py` (installed as the
  `overlay-slices` command). Run it with `--help` for the arguments.
- Rendering parameters and executable paths can be changed through a YAML
  config file (`--config`), see `config.py`.

Notes
-----
- Requires `mrview` (mrtrix3, https://mrtrix.readthedocs.io/en/latest/) and
  `convert`/`magick` (ImageMagick, https://imagemagick.org/) on the PATH.
- `mrview` needs a display (or a virtual one such as `xvfb-run`) even in
  batch mode.
"""

__version__ = "1.0"
