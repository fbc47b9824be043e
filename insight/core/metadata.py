"""EXIF metadata extraction."""

import logging
from datetime import datetime
from typing import Any, Optional

from PIL import ExifTags

from .image_utils import ImageDecodeError, open_image
from .models import MetadataResult

logger = logging.getLogger(__name__)

Base = ExifTags.Base
GPS = ExifTags.GPS

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    value = str(value).strip("\x00 ").strip()
    return value or None


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    number = _to_float(value)
    return int(number) if number is not None else None


def parse_exif_date(value: Any) -> Optional[str]:
    """Convert an EXIF 'YYYY:MM:DD HH:MM:SS' string to ISO-8601."""
    text = _clean_str(value)
    if not text:
        return None
    try:
        return datetime.strptime(text[:19], EXIF_DATE_FORMAT).isoformat()
    except ValueError:
        logger.debug("Unparseable EXIF date: %r", text)
        return None


def dms_to_degrees(dms: Any, ref: Any) -> Optional[float]:
    """Convert a (degrees, minutes, seconds) triple to signed decimal degrees."""
    if not dms or len(dms) != 3:
        return None
    try:
        degrees, minutes, seconds = (float(x) for x in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    value = degrees + minutes / 60.0 + seconds / 3600.0
    if _clean_str(ref) in ("S", "W"):
        value = -value
    return value


def format_gps(gps_ifd: dict) -> Optional[str]:
    lat = dms_to_degrees(gps_ifd.get(GPS.GPSLatitude), gps_ifd.get(GPS.GPSLatitudeRef))
    lon = dms_to_degrees(gps_ifd.get(GPS.GPSLongitude), gps_ifd.get(GPS.GPSLongitudeRef))
    if lat is None or lon is None:
        return None
    return f"{lat:.6f}, {lon:.6f}"


def extract_metadata(image_bytes: bytes) -> MetadataResult:
    """Extract the EXIF fields shown in the metadata panel.

    Never raises: undecodable images or broken EXIF blocks yield an empty
    MetadataResult.
    """
    try:
        img = open_image(image_bytes)
        exif = img.getexif()
        exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
        gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)
    except ImageDecodeError as e:
        logger.warning("Error extracting metadata: %s", e)
        return MetadataResult()
    except Exception as e:
        logger.warning("Error reading EXIF block: %s", e)
        return MetadataResult()

    def lookup(tag: int) -> Any:
        value = exif.get(tag)
        if value is None:
            value = exif_ifd.get(tag)
        return value

    width = _to_int(lookup(Base.ImageWidth))
    if width is None:
        width = _to_int(exif_ifd.get(Base.ExifImageWidth))
    height = _to_int(lookup(Base.ImageLength))
    if height is None:
        height = _to_int(exif_ifd.get(Base.ExifImageHeight))

    return MetadataResult(
        make=_clean_str(lookup(Base.Make)),
        model=_clean_str(lookup(Base.Model)),
        date=parse_exif_date(exif_ifd.get(Base.DateTimeOriginal)),
        gps=format_gps(gps_ifd) if gps_ifd else None,
        width=width,
        height=height,
        orientation=_to_int(lookup(Base.Orientation)),
        software=_clean_str(lookup(Base.Software)),
        artist=_clean_str(lookup(Base.Artist)),
        copyright=_clean_str(lookup(Base.Copyright)),
        iso=_to_int(exif_ifd.get(Base.ISOSpeedRatings)),
        f_number=_to_float(exif_ifd.get(Base.FNumber)) or None,
        exposure_time=_to_float(exif_ifd.get(Base.ExposureTime)) or None,
        focal_length=_to_float(exif_ifd.get(Base.FocalLength)) or None,
    )
