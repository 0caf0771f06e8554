[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtmplive"
version = "0.1.0"
description = "Building blocks for a live streaming server: RTMP chunking and handshake, GOP caching, stream fan-out and HLS playlists"
requires-python = ">=3.10"
dependencies = []
keywords = ["rtmp", "hls", "m3u8", "live", "streaming", "gop", "video"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rtmplive"]

[tool.pytest.ini_options]
addopts = "-ra"
