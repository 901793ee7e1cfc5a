"""Domain services package."""

from .stream_processor import JsonStreamDecoder, iter_json_values

__all__ = ["JsonStreamDecoder", "iter_json_values"]
