"""
HTTP routes for the Emotion Journal service.

Each module exposes a ``create_router`` factory that receives its
dependencies explicitly; ``server.create_app`` wires them together.
"""
