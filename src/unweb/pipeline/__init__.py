"""Conversion pipeline for unweb."""

from .converter import ConversionPipeline, convert_url_blocking

__all__ = ["ConversionPipeline", "convert_url_blocking"]
