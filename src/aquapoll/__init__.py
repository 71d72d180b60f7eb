"""AquaPoll: polling control plane for a remote aquarium controller."""

__version__ = "1.0.0"
