"""Shared fixtures: in-memory test images and isolated storage."""
import io
import struct
import zlib

import pytest
from PIL import ExifTags, Image

from insight.config import Config


def encode(img: Image.Image, fmt: str = "PNG", **kwargs) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format=fmt, **kwargs)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """A 64x64 solid blue PNG (gray level exactly 100)."""
    return encode(Image.new("RGB", (64, 64), (30, 60, 210)))


@pytest.fixture
def split_png_bytes():
    """64x64 PNG, left half black and right half white."""
    img = Image.new("RGB", (64, 64), (0, 0, 0))
    img.paste((255, 255, 255), (32, 0, 64, 64))
    return encode(img)


@pytest.fixture
def skin_png_bytes():
    """A 100x50 PNG filled with a skin-like tone."""
    return encode(Image.new("RGB", (100, 50), (200, 150, 120)))


@pytest.fixture
def jpeg_with_exif():
    """A JPEG carrying camera, date, ISO and GPS EXIF tags."""
    exif = Image.Exif()
    exif[ExifTags.Base.Make] = "Canon"
    exif[ExifTags.Base.Model] = "EOS R5"
    exif[ExifTags.Base.Software] = "Lightroom"
    exif[ExifTags.Base.Artist] = "Jane Doe"
    exif[ExifTags.IFD.Exif] = {
        ExifTags.Base.DateTimeOriginal: "2023:06:15 14:30:00",
        ExifTags.Base.ISOSpeedRatings: 400,
        ExifTags.Base.ExifImageWidth: 64,
        ExifTags.Base.ExifImageHeight: 48,
    }
    exif[ExifTags.IFD.GPSInfo] = {
        ExifTags.GPS.GPSLatitudeRef: "N",
        ExifTags.GPS.GPSLatitude: (48.0, 51.0, 29.6),
        ExifTags.GPS.GPSLongitudeRef: "W",
        ExifTags.GPS.GPSLongitude: (2.0, 17.0, 40.2),
    }
    img = Image.new("RGB", (64, 48), (120, 120, 120))
    return encode(img, "JPEG", exif=exif, quality=90)


@pytest.fixture
def config(tmp_path):
    return Config(data_dir=tmp_path)


def png_chunk(kind: bytes, payload: bytes) -> bytes:
    crc = zlib.crc32(kind + payload) & 0xFFFFFFFF
    return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", crc)


@pytest.fixture
def huge_png():
    """Factory for a tiny PNG whose header declares width x height 1-bit pixels."""
    def build(width=20000, height=20000):
        header = struct.pack(">IIBBBBB", width, height, 1, 0, 0, 0, 0)
        return (
            b"\x89PNG\r\n\x1a\n"
            + png_chunk(b"IHDR", header)
            + png_chunk(b"IDAT", zlib.compress(b""))
            + png_chunk(b"IEND", b"")
        )
    return build
