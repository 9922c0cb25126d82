"""Screen segmentation."""

from .service import ScreenSegmenter, screen_for_url, screen_id_for_path, screen_label_for_path

__all__ = ["ScreenSegmenter", "screen_for_url", "screen_id_for_path", "screen_label_for_path"]
