"""
toggl_notes - Toggl Track timers for markdown notes

Starts and stops Toggl timers for notes in a markdown vault, records the
time entries a note owns in its front-matter, and keeps those entries in
sync with the note's name and folder-derived project.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
