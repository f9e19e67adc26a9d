"""Voxel world explorer: chunked meshing with face culling, a free-flying camera and an OpenGL renderer."""

__version__ = "0.1.0"
__all__ = ["__version__"]