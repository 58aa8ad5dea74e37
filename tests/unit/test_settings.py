"""
Tests for CanvasSettings.
"""

import pytest

from gen_canvas.core.settings import (
    GROUP_PALETTE,
    CanvasSettings,
    DuplicatePolicy,
    GroupColorPolicy,
)


class TestCanvasSettings:
    """Tests for defaults, zoom clamping and dict round-trips."""

    def test_defaults(self):
        settings = CanvasSettings()
        assert (settings.min_zoom, settings.max_zoom) == (0.4, 2.0)
        assert settings.duplicate_policy is DuplicatePolicy.REJECT
        assert settings.group_color_policy is GroupColorPolicy.ROUND_ROBIN
        assert settings.group_palette == GROUP_PALETTE
        assert len(GROUP_PALETTE) == 7
        assert not settings.empty_drag_selects
        assert (settings.align_horizontal_gap, settings.align_vertical_gap) == (20.0, 60.0)

    @pytest.mark.parametrize("k, expected", [(0.1, 0.4), (0.4, 0.4), (1.3, 1.3), (2.0, 2.0), (9.0, 2.0)])
    def test_clamp_zoom(self, k, expected):
        assert CanvasSettings().clamp_zoom(k) == expected

    def test_to_dict_uses_plain_values(self):
        data = CanvasSettings(duplicate_policy=DuplicatePolicy.REPLACE).to_dict()
        assert data["duplicate_policy"] == "replace"
        assert data["group_color_policy"] == "round_robin"
        assert data["group_palette"] == list(GROUP_PALETTE)

    def test_from_dict_restores_values(self):
        original = CanvasSettings(
            max_zoom=3.0,
            duplicate_policy=DuplicatePolicy.ALLOW,
            group_color_policy=GroupColorPolicy.FIRST,
            empty_drag_selects=True,
            align_vertical_gap=80.0,
        )
        assert CanvasSettings.from_dict(original.to_dict()) == original

    def test_from_dict_fills_missing_keys(self):
        settings = CanvasSettings.from_dict({"minimap_width": 300})
        assert settings.minimap_width == 300
        assert settings.minimap_height == 160
        assert settings.duplicate_policy is DuplicatePolicy.REJECT

    def test_from_dict_rejects_unknown_policy(self):
        with pytest.raises(ValueError):
            CanvasSettings.from_dict({"duplicate_policy": "merge"})
