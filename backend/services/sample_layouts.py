"""
Hand-authored sample layouts (meters).

Used when generation produced nothing usable. Each call returns a fresh
copy so callers may mutate it.
"""

import copy

from config import DEFAULT_ROOM_HEIGHT

H = DEFAULT_ROOM_HEIGHT

_CANONICAL_LAYOUT = {
    "rooms": [
        {"name": "living", "width": 5, "length": 7, "height": H,
         "x": 0, "y": 0, "z": 0, "connected_to": ["kitchen", "hallway"]},
        {"name": "kitchen", "width": 4, "length": 4, "height": H,
         "x": 5, "y": 0, "z": 0, "connected_to": ["living"]},
        {"name": "hallway", "width": 2, "length": 5, "height": H,
         "x": 0, "y": 0, "z": 7, "connected_to": ["living", "bedroom"]},
        {"name": "bedroom", "width": 4, "length": 4, "height": H,
         "x": 2, "y": 0, "z": 7, "connected_to": ["hallway"]},
    ],
    "windows": [
        {"room": "living", "wall": "south", "width": 2, "height": 1.5, "position": 0.5},
        {"room": "kitchen", "wall": "east", "width": 1.5, "height": 1.2, "position": 0.5},
        {"room": "bedroom", "wall": "east", "width": 1.5, "height": 1.2, "position": 0.5},
    ],
    "doors": [
        {"from": "living", "to": "kitchen", "width": 1.2, "height": 2.1},
        {"from": "living", "to": "hallway", "width": 1.2, "height": 2.1},
        {"from": "hallway", "to": "bedroom", "width": 0.9, "height": 2.1},
    ],
}

_SKETCH_LAYOUT = {
    "rooms": [
        {"name": "living", "width": 5, "length": 7, "height": H,
         "x": 0, "y": 0, "z": 0, "connected_to": ["kitchen", "hallway"]},
        {"name": "kitchen", "width": 3.5, "length": 4, "height": H,
         "x": 5, "y": 0, "z": 0, "connected_to": ["living", "dining"]},
        {"name": "dining", "width": 4, "length": 4, "height": H,
         "x": 5, "y": 0, "z": 4, "connected_to": ["kitchen"]},
        {"name": "hallway", "width": 2, "length": 5, "height": H,
         "x": 0, "y": 0, "z": 7, "connected_to": ["living", "bedroom1", "bedroom2", "bathroom"]},
        {"name": "bedroom1", "width": 4.5, "length": 4, "height": H,
         "x": -4.5, "y": 0, "z": 7, "connected_to": ["hallway"]},
        {"name": "bedroom2", "width": 4, "length": 4.5, "height": H,
         "x": 2, "y": 0, "z": 7, "connected_to": ["hallway"]},
        {"name": "bathroom", "width": 2.5, "length": 2, "height": H,
         "x": 0, "y": 0, "z": 12, "connected_to": ["hallway"]},
    ],
    "windows": [
        {"room": "living", "wall": "south", "width": 2, "height": 1.5, "position": 0.5},
        {"room": "kitchen", "wall": "east", "width": 1.5, "height": 1.2, "position": 0.7},
        {"room": "bedroom1", "wall": "west", "width": 1.5, "height": 1.2, "position": 0.5},
        {"room": "bedroom2", "wall": "east", "width": 1.5, "height": 1.2, "position": 0.5},
    ],
    "doors": [
        {"from": "living", "to": "kitchen", "width": 1.2, "height": 2.1},
        {"from": "living", "to": "hallway", "width": 1.2, "height": 2.1},
        {"from": "kitchen", "to": "dining", "width": 1.2, "height": 2.1},
        {"from": "hallway", "to": "bedroom1", "width": 0.9, "height": 2.1},
        {"from": "hallway", "to": "bedroom2", "width": 0.9, "height": 2.1},
        {"from": "hallway", "to": "bathroom", "width": 0.8, "height": 2.1},
    ],
}


def canonical_layout() -> dict:
    """Four rooms: living, kitchen, hallway, bedroom."""
    return copy.deepcopy(_CANONICAL_LAYOUT)


def sketch_layout() -> dict:
    """Seven rooms, used when a sketch was supplied but could not be processed."""
    return copy.deepcopy(_SKETCH_LAYOUT)
