"""Docker packaging: scratch Dockerfile, artifact copy, image build and verification."""

from .generate_dockerfile import generate_dockerfile, render_dockerfile
from .package import ImageSpec, PackagedImage, package
from .verify_image import run as run_verify_image

__all__ = [
    "ImageSpec",
    "PackagedImage",
    "generate_dockerfile",
    "package",
    "render_dockerfile",
    "run_verify_image",
]
