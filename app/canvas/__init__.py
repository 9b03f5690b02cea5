"""Headless canvas: geometry, undo history and the pointer interaction engine."""
