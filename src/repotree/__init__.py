"""repotree - git repository accessor for editing applications.

Lets an editor read trees and blobs at any revision, mutate the working
tree, and commit the result with an explicit author, without knowing git
internals.

Exports:
    __version__: Package version string.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
