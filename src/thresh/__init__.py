"""Time-windowed alarm threshold evaluation package."""
