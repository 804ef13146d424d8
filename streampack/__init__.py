"""StreamPack: upload a video, package it as HLS and DASH, serve the trees."""

__version__ = "0.1.0"
