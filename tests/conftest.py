import os
import shutil
import subprocess

import nibabel as nib
import numpy as np
import pytest
from PIL import Image


class FakeTools:
    """Stand-in for mrview / convert / magick that records every call."""

    def __init__(self):
        self.calls = []
        self.merged_inputs = {}
        self.mrview_writes_capture = True

    def commands(self, tool):
        return [cmd for cmd in self.calls if os.path.basename(cmd[0]) == tool]

    def __call__(self, command, **kwargs):
        command = [str(c) for c in command]
        self.calls.append(command)
        tool = os.path.basename(command[0])
        if tool == "mrview":
            self._mrview(command)
        elif tool == "convert":
            self._convert(command)
        elif tool == "magick":
            self._magick(command)
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")

    def _mrview(self, command):
        if not self.mrview_writes_capture:
            return
        folder = command[command.index("-capture.folder") + 1]
        prefix = command[command.index("-capture.prefix") + 1]
        write_slice_png(os.path.join(folder, prefix + "0000.png"))

    def _convert(self, command):
        input_file, output_file = command[1], command[-1]
        rgba = np.array(Image.open(input_file).convert("RGBA"))
        background = np.all(rgba[..., :3] <= 25, axis=-1)
        rgba[background, 3] = 0
        Image.fromarray(rgba).save(output_file)

    def _magick(self, command):
        inputs = command[1:command.index("-background")]
        output_file = command[-1]
        self.merged_inputs[os.path.basename(output_file)] = [os.path.basename(p) for p in inputs]
        Image.new("RGBA", (8 * len(inputs), 8)).save(output_file)


def write_slice_png(path, size=16):
    """Black image with a grey square in the middle, like an mrview capture."""
    rgb = np.zeros((size, size, 3), dtype=np.uint8)
    rgb[size // 4:3 * size // 4, size // 4:3 * size // 4] = 128
    Image.fromarray(rgb).save(path)


def write_volume(path, shape=(4, 4, 4)):
    nib.save(nib.Nifti1Image(np.zeros(shape, dtype=np.float32), np.eye(4)), str(path))
    return str(path)


@pytest.fixture
def fake_tools(monkeypatch):
    tools = FakeTools()
    monkeypatch.setattr(shutil, "which", lambda name: os.path.join("/usr/bin", name))
    monkeypatch.setattr(subprocess, "run", tools)
    return tools


@pytest.fixture
def template(tmp_path):
    return write_volume(tmp_path / "MNI152_T1_1mm_brain.nii.gz")
