"""
An interactive batch encoder built around HandBrakeCLI and ffmpeg.

This package walks a working folder for video files, re-encodes each one with
a chosen encoder family (HandBrake or FFmpeg, CPU or GPU), names the output
after its new codec and reports how much space the batch saved. All media work
is delegated to the external tools; this package supervises them.

The package is organized into several categories:
- encode: progress parsing, ETA estimation, size projection, process
  supervision and the batch session controller.
- media: ffprobe-backed probing, input discovery and output naming.
- utils: constants, structured logging and small system helpers.
- config, keyboard, advanced, updates, cli: settings file, cancel key
  watcher, maintenance tools, encoder update checks and the menus.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
