"""Utility helpers for logging and image output."""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path
from typing import BinaryIO

from PIL import Image


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_PIL_FORMATS = {"png": "PNG", "tiff": "TIFF"}


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    """Configure root logging to stderr and optionally a file.

    Logs never go to stdout, which may carry the encoded image.
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def encode_image(image: Image.Image, fmt: str) -> bytes:
    try:
        pil_format = _PIL_FORMATS[fmt.casefold()]
    except KeyError as exc:
        raise ValueError(f"Unsupported output format '{fmt}'") from exc
    buf = io.BytesIO()
    image.save(buf, format=pil_format)
    return buf.getvalue()


def write_image(
    image: Image.Image,
    fmt: str,
    output_file: Path | None = None,
    stream: BinaryIO | None = None,
) -> None:
    """Write the encoded image to a file, or to binary stdout when no file is given."""
    data = encode_image(image, fmt)
    if output_file is not None:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with output_file.open("wb") as fh:
            fh.write(data)
        return
    out = stream if stream is not None else sys.stdout.buffer
    out.write(data)
    out.flush()
