"""Writers for similarity and interaction matrices."""

from .writers import TextDelimitedWriter, WriteSchema  # noqa: F401
