"""ThreeDPrintManager: a local catalog of 3D print projects."""

APP_NAME = "ThreeDPrintManager"

__version__ = "0.1.0"
