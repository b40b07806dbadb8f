"""
options.py - Run configuration for the compression pipeline.

Nothing here is read from files or the environment; callers build the
options directly (the CLI builds them from its arguments).
"""

from dataclasses import dataclass

DEFAULT_DPI = 150
MIN_DPI = 50
MAX_DPI = 300


@dataclass
class CompressionOptions:
    """Options for a compression run."""

    # Render resolution for both the probing pass and the compression pass
    dpi: int = DEFAULT_DPI

    # Keep the probing rasters and reuse them instead of rendering twice
    cache_renders: bool = False

    def __post_init__(self):
        """Validate options after initialization."""
        if not MIN_DPI <= self.dpi <= MAX_DPI:
            raise ValueError(f"DPI must be between {MIN_DPI} and {MAX_DPI}")

    @classmethod
    def from_dict(cls, data: dict) -> "CompressionOptions":
        """Create options from a dictionary."""
        return cls(
            dpi=data.get("dpi", DEFAULT_DPI),
            cache_renders=data.get("cache_renders", False),
        )

    def to_dict(self) -> dict:
        """Convert options to a dictionary."""
        return {
            "dpi": self.dpi,
            "cache_renders": self.cache_renders,
        }
