from .config import DynoCanvasConfig

__all__ = ["DynoCanvasConfig"]
