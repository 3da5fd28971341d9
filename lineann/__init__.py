"""Line, block and function annotations with merging, label propagation and coverage summaries."""

__version__ = "0.1.0"