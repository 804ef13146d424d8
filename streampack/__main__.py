"""
StreamPack server entry point.

Usage:
    python -m streampack

Environment Variables:
    HOST / PORT: Bind address (default: 0.0.0.0:5000)
    UPLOAD_FOLDER / OUTPUT_FOLDER: Storage roots (default: uploads / streams)
"""

from streampack.main import run

if __name__ == "__main__":
    run()
