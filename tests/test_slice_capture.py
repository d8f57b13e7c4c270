import os

import pytest

from overlay_slices.errors import CaptureNotFoundError, InvalidAxisError
from overlay_slices.slice_capture import (
    MRViewRenderer,
    canonical_capture_path,
    capture_slices,
    focal_point,
    format_coordinate,
    iterate_coordinates,
    slice_label,
)

from conftest import write_volume


@pytest.mark.parametrize("cnt, label", [(0, "00"), (7, "07"), (9, "09"), (10, "10"), (11, "11"), (100, "100")])
def test_slice_label_pads_to_two_digits_only(cnt, label):
    assert slice_label(cnt) == label


def test_focal_point_per_axis():
    assert focal_point(12, 0) == (12, -18, 18)
    assert focal_point(12, 1) == (-1, 12, 18)
    assert focal_point(12, 2) == (-1, -18, 12)


@pytest.mark.parametrize("axis", [-1, 3, 10])
def test_focal_point_rejects_invalid_axis(axis):
    with pytest.raises(InvalidAxisError):
        focal_point(0, axis)


def test_iterate_coordinates_matches_seq():
    coords = iterate_coordinates(-66, 66, 10)
    assert len(coords) == 14
    assert coords[0] == -66
    assert coords[-1] == 64
    assert iterate_coordinates(-20, 20, 20) == [-20, 0, 20]
    assert iterate_coordinates(20, -20, -20) == [20, 0, -20]


def test_iterate_coordinates_empty_and_zero_step():
    assert iterate_coordinates(20, -20, 10) == []
    with pytest.raises(ValueError):
        iterate_coordinates(0, 10, 0)


def test_iterate_coordinates_floats_do_not_drift():
    coords = iterate_coordinates(0, 1, 0.1)
    assert len(coords) == 11
    assert format_coordinate(coords[3]) == "0.3"
    assert format_coordinate(-18.0) == "-18"


def test_canonical_capture_path():
    path = os.path.join("out", "left_slice_07-0000.png")
    assert canonical_capture_path(path) == os.path.join("out", "left_slice_07.png")


def test_build_command_loads_overlay_twice():
    renderer = MRViewRenderer()
    cmd = renderer.build_command("t1.nii.gz", "left.nii", (-1, -18, 5), 2, "out", "left_slice_00-")
    assert cmd[:2] == ["mrview", "t1.nii.gz"]
    assert cmd[cmd.index("-fov") + 1] == "245"
    assert cmd[cmd.index("-plane") + 1] == "2"
    assert cmd[cmd.index("-focus") + 1] == "-1,-18,5"
    assert cmd.count("-overlay.load") == 2
    assert cmd.count("-overlay.opacity") == 2
    assert cmd[cmd.index("-overlay.threshold_min") + 1] == "1e-08"
    assert cmd[cmd.index("-overlay.threshold_max") + 1] == "-1e-08"
    assert cmd[cmd.index("-capture.prefix") + 1] == "left_slice_00-"
    assert cmd[-2:] == ["-capture.grab", "-exit"]


def test_capture_slices_names_and_focus(fake_tools, template, tmp_path):
    overlay = write_volume(tmp_path / "left.nii")
    out = tmp_path / "out"
    out.mkdir()

    files = capture_slices(template, overlay, str(out), -66, 66, 10, 0)

    assert [os.path.basename(f) for f in files] == [f"left_slice_{slice_label(i)}.png" for i in range(14)]
    assert all(os.path.exists(f) for f in files)
    assert not any(name.endswith("-0000.png") for name in os.listdir(out))

    mrview_calls = fake_tools.commands("mrview")
    assert len(mrview_calls) == 14
    assert mrview_calls[0][mrview_calls[0].index("-focus") + 1] == "-66,-18,18"
    assert mrview_calls[13][mrview_calls[13].index("-focus") + 1] == "64,-18,18"


def test_capture_slices_counter_restarts_per_mask(fake_tools, template, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    first = capture_slices(template, write_volume(tmp_path / "a.nii"), str(out), 20, -20, -20, 1)
    second = capture_slices(template, write_volume(tmp_path / "b.nii"), str(out), 20, -20, -20, 1)
    assert [os.path.basename(f) for f in first] == ["a_slice_00.png", "a_slice_01.png", "a_slice_02.png"]
    assert [os.path.basename(f) for f in second] == ["b_slice_00.png", "b_slice_01.png", "b_slice_02.png"]


def test_capture_slices_invalid_axis_fails_before_rendering(fake_tools, template, tmp_path):
    with pytest.raises(InvalidAxisError):
        capture_slices(template, write_volume(tmp_path / "left.nii"), str(tmp_path), 0, 10, 5, 3)
    assert fake_tools.calls == []


def test_capture_slices_missing_capture(fake_tools, template, tmp_path):
    fake_tools.mrview_writes_capture = False
    with pytest.raises(CaptureNotFoundError):
        capture_slices(template, write_volume(tmp_path / "left.nii"), str(tmp_path), 0, 0, 1, 2)
