import numpy as np
import pytest

from conftest import solid_buffer
from toolsia.app.errors import CorruptBuffer, FeatureLocked
from toolsia.core.buffer import PixelBuffer
from toolsia.graph.policies import resolve_policy
from toolsia.pipeline.state import EnhanceEffects
from toolsia.tools.image_ops.enhance import (
    CameraEffects,
    SharpenContrast,
    enhancement_factor,
    filter_amounts,
    focus_box,
)
from toolsia.tools.image_ops.remove_bg import MaskByLuminance
from toolsia.tools.image_ops.steps import apply_steps, build_steps
from toolsia.tools.image_ops.watermark import StampWatermark, watermark_box


def _pixel_row(*rgba):
    data = np.array([list(p) for p in rgba], dtype=np.uint8).reshape(1, len(rgba), 4)
    return PixelBuffer(len(rgba), 1, data)


# --- MaskByLuminance ---

def test_basic_mask_uses_channel_mean():
    buf = _pixel_row((221, 221, 221, 255), (220, 220, 220, 255), (255, 255, 0, 255))
    out = MaskByLuminance(high_fidelity=False).apply(buf)

    assert out.data[0, :, 3].tolist() == [0, 255, 255]


def test_high_fidelity_bands():
    buf = _pixel_row(
        (245, 245, 245, 255),  # brightness > 240 -> clear
        (210, 210, 220, 255),  # > 200 and low chroma -> clear
        (190, 190, 190, 255),  # > 180, chroma < 50 -> soft
        (190, 190, 190, 100),  # soft scales the existing alpha
        (255, 255, 0, 255),    # bright but saturated -> kept
        (100, 100, 100, 255),  # dark -> kept
    )
    out = MaskByLuminance(high_fidelity=True).apply(buf)

    assert out.data[0, :, 3].tolist() == [0, 0, 77, 30, 255, 255]


def test_mask_only_touches_alpha():
    rng = np.random.default_rng(7)
    data = rng.integers(0, 256, size=(32, 32, 4), dtype=np.uint8)
    buf = PixelBuffer(32, 32, data)

    for hifi in (False, True):
        out = MaskByLuminance(high_fidelity=hifi).apply(buf)
        assert np.array_equal(out.data[..., :3], data[..., :3])
    # input buffer untouched
    assert np.array_equal(buf.data, data)


def test_transparent_pixels_are_stable_under_rerun():
    buf = solid_buffer(4, 4, (250, 250, 250, 255))
    step = MaskByLuminance(high_fidelity=True)

    once = step.apply(buf)
    twice = step.apply(once)

    assert (once.data[..., 3] == 0).all()
    assert np.array_equal(twice.data, once.data)


def test_mask_rejects_corrupt_buffer():
    bad = PixelBuffer(4, 4, np.zeros((4, 4, 3), dtype=np.uint8))
    with pytest.raises(CorruptBuffer):
        MaskByLuminance().apply(bad)


# --- SharpenContrast ---

def test_filter_amounts():
    assert filter_amounts(1.0) == pytest.approx(
        {"contrast": 1.2, "brightness": 1.1, "saturation": 1.15, "blur_px": 0.0}
    )
    assert filter_amounts(0.3)["blur_px"] == pytest.approx(0.35)


def test_enhancement_factor_from_level():
    assert enhancement_factor(100) == 1.0
    assert enhancement_factor(30) == pytest.approx(0.3)


def test_sharpen_mid_grey_at_full_strength():
    # contrast 128 -> 128.1, brightness -> 140.91 -> 141, boost 141 + 13*0.3 -> 145
    out = SharpenContrast(factor=1.0).apply(solid_buffer(3, 3, (128, 128, 128, 77)))

    assert (out.data[..., :3] == 145).all()
    assert (out.data[..., 3] == 77).all()


def test_sharpen_clamps_extremes():
    buf = _pixel_row((0, 0, 0, 255), (255, 255, 255, 255))
    out = SharpenContrast(factor=1.0).apply(buf)

    assert out.data[0, 0, :3].tolist() == [0, 0, 0]
    assert out.data[0, 1, :3].tolist() == [255, 255, 255]


def test_sharpen_boosts_saturation():
    buf = solid_buffer(2, 2, (180, 120, 100, 255))
    out = SharpenContrast(factor=1.0).apply(buf)
    r, g, b = (int(v) for v in out.data[0, 0, :3])
    assert r - b > 180 - 100


def test_low_factor_blur_keeps_flat_areas_flat():
    out = SharpenContrast(factor=0.3).apply(solid_buffer(9, 9, (128, 128, 128, 255)))
    rgb = out.data[..., :3]
    assert (rgb == rgb[0, 0]).all()


# --- CameraEffects ---

def test_camera_slider_mapping():
    a = CameraEffects(exposure=0, sharpness=100, vibrance=100, warmth=100).amounts()
    assert a["brightness"] == pytest.approx(0.8)
    assert a["contrast"] == pytest.approx(1.3)
    assert a["saturation"] == pytest.approx(1.4)
    assert a["sepia"] == pytest.approx(0.25)
    assert a["hue_rotate_deg"] == pytest.approx(15.0)
    assert a["blur_px"] == 0.0

    cool = CameraEffects(warmth=0).amounts()
    assert cool["sepia"] == pytest.approx(0.25)
    assert cool["hue_rotate_deg"] == 0.0


@pytest.mark.parametrize("exposure,expected", [(100, 154), (0, 102)])
def test_camera_exposure_on_grey(exposure, expected):
    # sharpness 25 -> contrast 1.0, so only brightness moves the grey
    step = CameraEffects(exposure=exposure, sharpness=25)
    out = step.apply(solid_buffer(4, 4, (128, 128, 128, 90)))

    assert (out.data[..., :3] == expected).all()
    assert (out.data[..., 3] == 90).all()


def test_camera_warmth_tints_grey():
    neutral = CameraEffects(sharpness=25).apply(solid_buffer(2, 2, (128, 128, 128, 255)))
    warm = CameraEffects(sharpness=25, warmth=100).apply(solid_buffer(2, 2, (128, 128, 128, 255)))

    r, g, b = neutral.data[0, 0, :3].tolist()
    assert r == g == b
    r, g, b = (int(v) for v in warm.data[0, 0, :3])
    assert r > b


def test_background_blur_keeps_centre_sharp():
    yy, xx = np.mgrid[0:40, 0:40]
    grey = np.where((xx + yy) % 2 == 0, 255, 0).astype(np.uint8)
    data = np.dstack([grey, grey, grey, np.full_like(grey, 255)])
    buf = PixelBuffer(40, 40, np.ascontiguousarray(data))

    out = CameraEffects(sharpness=25, background_blur=10).apply(buf)
    x0, y0, x1, y1 = focus_box(40, 40)

    assert (x0, y0, x1, y1) == (12, 12, 28, 28)
    assert np.array_equal(out.data[y0:y1, x0:x1], data[y0:y1, x0:x1])
    assert 0 < int(out.data[2, 2, 0]) < 255


# --- StampWatermark ---

def test_watermark_is_opaque_and_bottom_left():
    buf = solid_buffer(200, 100, (255, 255, 255, 0))
    out = StampWatermark("toolsIA").apply(buf)
    x0, y0, x1, y1 = watermark_box(200, 100, "toolsIA")

    alpha = out.data[..., 3]
    assert x0 < 50 and y1 > 80
    assert (alpha[y0:y1, x0:x1] == 255).any()
    outside = alpha.copy()
    outside[y0:y1, x0:x1] = 0
    assert (outside == 0).all()


def test_watermark_has_no_partial_alpha():
    buf = solid_buffer(512, 256, (255, 255, 255, 0))
    alpha = StampWatermark("toolsIA").apply(buf).data[..., 3]

    assert set(np.unique(alpha).tolist()) == {0, 255}


# --- composition ---

def test_steps_per_tool():
    basic = resolve_policy(False, "remove_background")
    unlocked = resolve_policy(True, "remove_background")

    assert [s.op for s in build_steps("remove_background", basic)] == [
        "mask_by_luminance",
        "stamp_watermark",
    ]
    assert [s.op for s in build_steps("remove_background", unlocked)] == ["mask_by_luminance"]
    assert build_steps("remove_background", unlocked)[0].high_fidelity is True
    assert [s.op for s in build_steps("enhance", unlocked, enhancement_level=50)] == ["sharpen_contrast"]
    assert build_steps("compress", basic) == []


def test_camera_effects_step_is_tier_gated():
    knobs = EnhanceEffects(exposure=70, background_blur=20)

    steps = build_steps("enhance", resolve_policy(True, "enhance"), effects=knobs)
    assert [s.op for s in steps] == ["sharpen_contrast", "camera_effects"]
    assert steps[1].background_blur == 20

    with pytest.raises(FeatureLocked):
        build_steps("enhance", resolve_policy(False, "enhance"), effects=knobs)


def test_apply_steps_in_order():
    policy = resolve_policy(False, "remove_background")
    buf = solid_buffer(120, 60, (255, 255, 255, 255))

    out = apply_steps(buf, build_steps("remove_background", policy))
    # everything masked except the stamped text
    alpha = out.data[..., 3]
    assert (alpha[:10, :] == 0).all()
    assert (alpha == 255).any()
