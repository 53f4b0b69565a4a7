"""Shared test fixtures for framecompose tests."""

import copy

import pytest
import yaml


DEMO_COMPOSITION = {
    "fps": 30,
    "width": 320,
    "height": 180,
    "durationInFrames": 90,
    "colors": {"background": "#101418", "text": "#F5F5F5", "accent": "#3B82F6"},
    "tracks": [
        {
            "id": "titles",
            "type": "text",
            "items": [
                {
                    "id": "title",
                    "type": "text",
                    "from": 0,
                    "durationInFrames": 60,
                    "text": "Hello",
                    "color": "accent",
                    "keyframes": [
                        {"frame": 0, "values": {"opacity": 0, "scale": 0.5}},
                        {"frame": 30, "values": {"opacity": 1, "scale": 1}, "easing": "linear"},
                    ],
                    "enterAnimation": {"type": "fade", "durationInFrames": 10},
                },
                {
                    "id": "badge",
                    "type": "text",
                    "from": 60,
                    "durationInFrames": 30,
                    "text": "Go",
                    "motionPath": {"preset": "wave"},
                },
            ],
        },
        {
            "id": "ui",
            "type": "component",
            "items": [
                {
                    "id": "signup-form",
                    "type": "component",
                    "from": 0,
                    "durationInFrames": 90,
                    "width": 0.5,
                    "height": 0.5,
                },
            ],
        },
        {
            "id": "cursor-track",
            "type": "cursor",
            "items": [
                {
                    "id": "cursor-1",
                    "type": "cursor",
                    "from": 10,
                    "durationInFrames": 70,
                    "keyframes": [
                        {"frame": 0, "x": 20, "y": 20},
                        {"frame": 20, "target": "#email",
                         "interaction": {"selector": "#email", "action": "click"}},
                        {"frame": 30, "target": "#email", "click": True,
                         "interaction": {"selector": "#email", "action": "type",
                                         "value": "ada@example.com"}},
                    ],
                },
            ],
        },
    ],
    "scenes": [
        {"startFrame": 0, "durationInFrames": 60,
         "transition": {"type": "curtain", "durationInFrames": 20}},
        {"startFrame": 60, "durationInFrames": 30,
         "transition": {"type": "fade", "durationInFrames": 10}},
    ],
}

DEMO_LAYOUT = {
    "surface": {"left": 0, "top": 0, "width": 640, "height": 360},
    "containers": {
        "signup-form": {
            "#email": {"left": 200, "top": 100, "width": 200, "height": 40},
            "button.submit": [260, 180, 80, 30],
        },
    },
}


@pytest.fixture
def composition_dict():
    """Raw demo composition, as it would appear in a YAML file."""
    return copy.deepcopy(DEMO_COMPOSITION)


@pytest.fixture
def composition(composition_dict):
    """Normalized demo composition."""
    from framecompose.composition import normalize_composition

    return normalize_composition(composition_dict)


@pytest.fixture
def composition_file(tmp_path, composition_dict):
    path = tmp_path / "composition.yaml"
    path.write_text(yaml.dump(composition_dict))
    return path


@pytest.fixture
def layout_file(tmp_path):
    path = tmp_path / "layout.yaml"
    path.write_text(yaml.dump(copy.deepcopy(DEMO_LAYOUT)))
    return path
