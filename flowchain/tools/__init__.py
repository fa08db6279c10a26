"""
Transform registry and implementations

Contains the transform registry and the built-in text transforms.
"""

from .registry import TransformRegistry

from .registry import (
    uppercase,
    lowercase,
    reverse,
    strip,
    title
)

__all__ = [
    "TransformRegistry",
    "uppercase",
    "lowercase",
    "reverse",
    "strip",
    "title"
]
