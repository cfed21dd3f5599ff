"""lingua adapter for multi-language span detection."""

from .detector import LinguaDetectorAdapter, lingua_catalog

__all__ = ["LinguaDetectorAdapter", "lingua_catalog"]
