"""
Configuration for the external tools and the rendering parameters.

All values have defaults matching the standard MNI152 1mm setup, so a config
file is only needed to point at non-standard executables or to tweak the look
of the captures.
"""

import os
import sys
import copy
import yaml

DEFAULT_CONFIG = {
    # Executables (names on PATH or absolute paths)
    "mrview_exe": "mrview",
    "convert_exe": "convert",
    "magick_exe": "magick",
    # mrview rendering
    "fov": 245,
    "opacity": 0.7,
    "positive_colourmap": 1,
    "negative_colourmap": 2,
    "threshold": 0.00000001,
    "focus_offsets": [-1, -18, 18],
    # ImageMagick post-processing
    "fuzz_percent": 10,
    "background_colour": "black",
    "smush": -30,
}


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    If no path is given the defaults are returned. If a path is given but the
    file does not exist, a template with the defaults is written there and the
    program exits so the user can edit it.

    Parameters
    ----------
    config_path : str, optional
        Path to the configuration YAML file.

    Returns
    -------
    dict
        Configuration dictionary with all keys of `DEFAULT_CONFIG`.

    Raises
    ------
    ValueError
        If the file contains unknown keys or malformed focus offsets.
    """

    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        return config

    # Check if config exists
    if not os.path.exists(config_path):
        print(f"Software expects config file at '{os.path.abspath(config_path)}'")
        print("Creating template config file. Please edit the values accordingly and re-run.")
        with open(config_path, "w") as f:
            yaml.dump(DEFAULT_CONFIG, f)
        sys.exit(0)  # Exit so user can edit values

    # Load config
    with open(config_path, "r") as f:
        loaded = yaml.safe_load(f) or {}

    unknown = sorted(set(loaded) - set(DEFAULT_CONFIG))
    if unknown:
        raise ValueError(f"Unknown config keys in '{config_path}': {', '.join(unknown)}")
    config.update(loaded)

    if len(config["focus_offsets"]) != 3:
        raise ValueError(f"'focus_offsets' must hold 3 values, got {config['focus_offsets']}")

    return config
