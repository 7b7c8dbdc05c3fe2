import pytest

from conftest import solid_buffer
from toolsia.app.errors import InvalidDimensions
from toolsia.tools.image_ops.resize import (
    enhancement_size,
    fit_within,
    resample,
    scale_size,
    upscale_for_enhancement,
)


def test_fit_within_leaves_small_images_alone():
    assert fit_within(400, 300, 512) == (400, 300)
    assert fit_within(512, 100, 512) == (512, 100)


def test_fit_within_scales_long_edge():
    assert fit_within(2000, 1000, 512) == (512, 256)
    assert fit_within(1000, 2000, 512) == (256, 512)
    assert fit_within(3000, 1200, 1024) == (1024, 410)


def test_independent_axis_rounding():
    # 500/1001 -> 500.0 x 166.33
    w, h = fit_within(1001, 333, 500)
    assert (w, h) == (500, 166)
    assert abs(h - 333 * 500 / 1001) <= 1.0


def test_never_rounds_to_zero():
    assert fit_within(10000, 1, 100) == (100, 1)
    assert scale_size(3, 3, 0.01) == (1, 1)


@pytest.mark.parametrize("args", [(0, 10, 100), (10, -1, 100), (10, 10, 0)])
def test_invalid_inputs(args):
    with pytest.raises(InvalidDimensions):
        fit_within(*args)


def test_non_positive_scale():
    with pytest.raises(InvalidDimensions):
        scale_size(10, 10, 0.0)
    with pytest.raises(InvalidDimensions):
        scale_size(10, 10, float("nan"))


def test_enhancement_upscales_toward_4k():
    assert enhancement_size(800, 600, 3840, 1.0) == (2000, 1500)
    assert enhancement_size(800, 600, 1280, 1.0) == (1280, 960)


def test_enhancement_long_edge_capped():
    w, h = enhancement_size(3000, 1000, 3840, 1.0)
    assert max(w, h) == 3840
    assert enhancement_size(5000, 2500, 3840, 1.0) == (3840, 1920)


def test_low_enhancement_level_shrinks():
    # 2.5 * 0.3 = 0.75
    assert enhancement_size(800, 600, 3840, 0.3) == (600, 450)


def test_resample_returns_same_buffer_when_it_fits():
    buf = solid_buffer(100, 50, (1, 2, 3, 255))
    assert resample(buf, 512) is buf


def test_resample_allocates_new_buffer():
    buf = solid_buffer(1000, 500, (10, 20, 30, 255))
    out = resample(buf, 100, "high")

    assert out is not buf
    assert (out.width, out.height) == (100, 50)
    assert out.data.shape == (50, 100, 4)
    assert (buf.width, buf.height) == (1000, 500)
    assert out.data[25, 50].tolist() == [10, 20, 30, 255]


def test_upscale_for_enhancement():
    buf = solid_buffer(80, 60, (0, 0, 0, 255))
    out = upscale_for_enhancement(buf, 3840, 1.0, "medium")
    assert (out.width, out.height) == (200, 150)
    out.check()
