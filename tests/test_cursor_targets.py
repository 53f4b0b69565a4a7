"""Tests for cursor target resolution and layout snapshots."""

import threading

import pytest
import yaml

from framecompose.cache import ContentCache
from framecompose.channel import RequestChannel
from framecompose.cursor_targets import (
    RESOLVE_TARGET_REQUEST,
    CursorTargetContext,
    LayoutSnapshot,
    load_layout_snapshot,
    request_cursor_target,
    resolve_all_cursor_targets,
    resolve_cursor_target,
    target_key,
    target_request_handler,
    validate_selector,
    visible_component_items,
)


class _Element:
    def __init__(self, rect):
        self.rect = rect

    def bounding_rect(self):
        return self.rect


class _Container:
    def __init__(self, elements):
        self.elements = elements

    def query_selector(self, selector):
        return self.elements.get(selector)


class _BrokenContainer:
    def query_selector(self, selector):
        raise RuntimeError("detached")


def _context(containers=None, surface=(0, 0, 960, 540)):
    if containers is None:
        containers = {"form": _Container({"#email": _Element((100, 50, 40, 20))})}
    return CursorTargetContext(containers, _Element(surface), 1920, 1080)


class TestTargetKey:
    def test_integral_float_frames(self):
        assert target_key("cursor-1", 10.0) == "cursor-1:10"
        assert target_key("cursor-1", 10) == "cursor-1:10"
        assert target_key("cursor-1", 2.5) == "cursor-1:2.5"


class TestResolveCursorTarget:
    def test_scales_element_centre_to_composition(self):
        result = resolve_cursor_target("#email", None, _context(), 0, 0)
        assert result == {"x": 240, "y": 120, "found": True}

    def test_applies_offset(self):
        result = resolve_cursor_target("#email", {"x": 5, "y": -5}, _context(), 0, 0)
        assert (result["x"], result["y"]) == (245, 115)

    def test_surface_origin_is_subtracted(self):
        containers = {"form": _Container({"#email": _Element((110, 60, 40, 20))})}
        result = resolve_cursor_target("#email", None, _context(containers, (10, 10, 960, 540)), 0, 0)
        assert (result["x"], result["y"]) == (240, 120)

    def test_fallback_when_not_found(self):
        result = resolve_cursor_target("#nope", None, _context(), 11, 22)
        assert result == {"x": 11, "y": 22, "found": False}

    def test_fallback_without_target(self):
        assert resolve_cursor_target(None, None, _context(), 1, 2)["found"] is False
        assert resolve_cursor_target("", None, _context(), 1, 2)["found"] is False

    def test_searches_containers_in_order(self):
        containers = {
            "missing": None,
            "broken": _BrokenContainer(),
            "first": _Container({"#a": _Element((0, 0, 20, 20))}),
            "second": _Container({"#a": _Element((100, 100, 20, 20))}),
        }
        result = resolve_cursor_target("#a", None, _context(containers), 0, 0)
        assert (result["x"], result["y"]) == (20, 20)

    def test_zero_size_surface_is_a_miss(self):
        result = resolve_cursor_target("#email", None, _context(surface=(0, 0, 0, 0)), 5, 6)
        assert result == {"x": 5, "y": 6, "found": False}

    def test_missing_surface_is_a_miss(self):
        context = CursorTargetContext(
            {"form": _Container({"#email": _Element((0, 0, 10, 10))})}, None, 100, 100,
        )
        assert resolve_cursor_target("#email", None, context, 1, 1)["found"] is False


class TestVisibleComponentItems:
    def test_filters_by_type_window_and_visibility(self, composition):
        assert [i["id"] for i in visible_component_items(composition["tracks"], 10)] == [
            "signup-form",
        ]
        assert visible_component_items(composition["tracks"], 90) == []
        composition["tracks"][1]["visible"] = False
        assert visible_component_items(composition["tracks"], 10) == []


class TestResolveAllCursorTargets:
    def test_resolves_targets_and_passes_coordinates(self, composition, layout_file):
        context = load_layout_snapshot(layout_file).context(320, 180)
        resolved = resolve_all_cursor_targets(composition["tracks"], context)
        assert resolved["cursor-1:0"] == {"x": 20, "y": 20, "found": True}
        assert resolved["cursor-1:20"] == {"x": 150, "y": 60, "found": True}
        assert resolved["cursor-1:30"]["found"] is True

    def test_missing_target_falls_back_to_centre(self, composition):
        snapshot = LayoutSnapshot((0, 0, 640, 360), {"signup-form": {}})
        resolved = resolve_all_cursor_targets(composition["tracks"], snapshot.context(320, 180))
        assert resolved["cursor-1:20"] == {"x": 160, "y": 90, "found": False}

    def test_cached_by_content(self, composition, layout_file):
        cache = ContentCache()
        context = load_layout_snapshot(layout_file).context(320, 180)
        first = resolve_all_cursor_targets(composition["tracks"], context, cache)
        second = resolve_all_cursor_targets(composition["tracks"], context, cache)
        assert first == second
        assert cache.hits == 1
        assert len(cache) == 1

    def test_live_context_is_not_cached(self, composition):
        cache = ContentCache()
        resolve_all_cursor_targets(composition["tracks"], _context(), cache)
        assert len(cache) == 0

    def test_cache_misses_when_layout_changes(self, composition):
        cache = ContentCache()
        a = LayoutSnapshot((0, 0, 640, 360), {"f": {"#email": (0, 0, 10, 10)}})
        b = LayoutSnapshot((0, 0, 640, 360), {"f": {"#email": (100, 0, 10, 10)}})
        first = resolve_all_cursor_targets(composition["tracks"], a.context(320, 180), cache)
        second = resolve_all_cursor_targets(composition["tracks"], b.context(320, 180), cache)
        assert first["cursor-1:20"] != second["cursor-1:20"]
        assert len(cache) == 2


class TestCrossThreadResolution:
    def test_request_served_by_owner_thread(self):
        channel = RequestChannel({RESOLVE_TARGET_REQUEST: target_request_handler(_context())})
        results = []
        worker = threading.Thread(
            target=lambda: results.append(
                request_cursor_target(channel, "#email", None, 0, 0, timeout=5)
            ),
        )
        worker.start()
        served = channel.serve_pending(max_requests=1, block=5)
        worker.join(timeout=5)
        assert served == 1
        assert results == [{"x": 240, "y": 120, "found": True}]

    def test_timeout_degrades_to_fallback(self):
        channel = RequestChannel()
        result = request_cursor_target(channel, "#email", None, 3, 4, timeout=0.01)
        assert result == {"x": 3, "y": 4, "found": False}
        assert channel.pending_count == 0

    def test_handler_failure_degrades_to_fallback(self):
        channel = RequestChannel()
        results = []
        worker = threading.Thread(
            target=lambda: results.append(
                request_cursor_target(channel, "#email", None, 3, 4, timeout=5)
            ),
        )
        worker.start()
        channel.serve_pending(max_requests=1, block=5)
        worker.join(timeout=5)
        assert results == [{"x": 3, "y": 4, "found": False}]


class TestValidateSelector:
    @pytest.mark.parametrize("selector", [
        "#email", "button.submit", "input[name='q']", "ul > li:nth-child(2)",
    ])
    def test_accepts_valid(self, selector):
        validate_selector(selector)

    @pytest.mark.parametrize("selector", [
        "", "   ", "input[name", "a)", "input[name='q]", "> li", "a +", "div,",
    ])
    def test_rejects_invalid(self, selector):
        with pytest.raises(ValueError, match="Invalid selector"):
            validate_selector(selector)

    def test_invalid_selector_is_a_miss_in_snapshots(self):
        snapshot = LayoutSnapshot((0, 0, 100, 100), {"f": {"#a": (0, 0, 10, 10)}})
        result = resolve_cursor_target("#a[", None, snapshot.context(100, 100), 1, 2)
        assert result == {"x": 1, "y": 2, "found": False}


class TestLoadLayoutSnapshot:
    def _write(self, tmp_path, content):
        path = tmp_path / "test_layout.yaml"
        path.write_text(yaml.dump(content))
        return path

    def test_loads_rects(self, layout_file):
        snapshot = load_layout_snapshot(layout_file)
        assert snapshot.surface.bounding_rect() == (0, 0, 640, 360)
        element = snapshot.containers["signup-form"].query_selector("button.submit")
        assert element.bounding_rect() == (260, 180, 80, 30)

    def test_fingerprint_tracks_content(self, tmp_path, layout_file):
        other = self._write(tmp_path, {"surface": [0, 0, 100, 100], "containers": {}})
        assert load_layout_snapshot(layout_file).fingerprint == (
            load_layout_snapshot(layout_file).fingerprint
        )
        assert load_layout_snapshot(other).fingerprint != (
            load_layout_snapshot(layout_file).fingerprint
        )

    def test_missing_surface(self, tmp_path):
        path = self._write(tmp_path, {"containers": {}})
        with pytest.raises(ValueError, match="missing required field 'surface'"):
            load_layout_snapshot(path)

    def test_zero_size_surface(self, tmp_path):
        path = self._write(tmp_path, {"surface": [0, 0, 0, 100]})
        with pytest.raises(ValueError, match="must be > 0"):
            load_layout_snapshot(path)

    def test_bad_rect(self, tmp_path):
        path = self._write(tmp_path, {
            "surface": [0, 0, 100, 100],
            "containers": {"f": {"#a": {"left": 0, "top": 0, "width": "wide", "height": 1}}},
        })
        with pytest.raises(ValueError, match="container 'f', '#a'"):
            load_layout_snapshot(path)

    def test_null_container_allowed(self, tmp_path):
        path = self._write(tmp_path, {"surface": [0, 0, 100, 100], "containers": {"f": None}})
        assert load_layout_snapshot(path).containers == {"f": None}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_layout_snapshot(tmp_path / "nope.yaml")
