from .stream_formatter import StreamFormatter, format_size

__all__ = ["StreamFormatter", "format_size"]
