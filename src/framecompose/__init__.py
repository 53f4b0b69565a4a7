"""framecompose — frame-accurate animation evaluation for video compositions.

Evaluate any frame of a declarative composition (keyframes, springs, bezier
motion paths, cursor-driven UI interactions, scene transitions) directly,
with no dependence on previously rendered frames.
"""
