[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webpserve"
version = "0.1.0"
description = "A small threaded HTTP server that serves an HTML page and a WebP image"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "server", "sockets", "webp", "threading"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
webpserve = "webpserve.server:main"
webpserve-showip = "webpserve.showip:main"

[tool.hatch.build.targets.wheel]
packages = ["webpserve"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
