"""Exception hierarchy for previewsync.

Expected selection/mapping failures are *not* exceptions: they travel as
``ErrorMessage`` values (see ``previewsync.models``). These classes cover
programming errors and host adapters that cannot service a call.
"""

from __future__ import annotations


class PreviewSyncError(Exception):
    """Base class for all previewsync exceptions."""


class EditorNotMountedError(PreviewSyncError):
    """The rich-text editor instance is not mounted and cannot be driven."""


class InvalidRangeError(PreviewSyncError, ValueError):
    """An editor range was constructed with a negative index or length."""
