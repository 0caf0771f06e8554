"""Building blocks for RTMP chunking and handshakes, stream fan-out with GOP caching, and HLS segment caching."""

__version__ = "0.1.0"