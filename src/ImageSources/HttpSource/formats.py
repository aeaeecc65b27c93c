"""Source format classification shared by the HTTP source resolver."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple, Union

__all__ = ("Format", "MediaType")

_TOKEN = re.compile(r"^[A-Za-z0-9!#$&^_.+\-]+$")


class Format(Enum):
    """Media formats a source may be served in.

    Each member carries its preferred extensions and the media types it is
    known by; the first entry of each is the canonical one.
    """

    AVI = ("avi", "AVI", ("avi",), ("video/avi", "video/msvideo", "video/x-msvideo"))
    BMP = ("bmp", "BMP", ("bmp", "dib"), ("image/bmp", "image/x-bmp", "image/x-ms-bmp"))
    DCM = ("dcm", "DICOM", ("dcm", "dic"), ("application/dicom",))
    FLV = ("flv", "FLV", ("flv", "f4v"), ("video/x-flv",))
    GIF = ("gif", "GIF", ("gif",), ("image/gif",))
    JP2 = ("jp2", "JPEG2000", ("jp2", "j2k", "jpx", "jpf"), ("image/jp2", "image/jpx"))
    JPG = ("jpg", "JPEG", ("jpg", "jpeg", "jpe", "jif", "jfif"), ("image/jpeg", "image/jpg", "image/pjpeg"))
    MOV = ("mov", "QuickTime", ("mov", "qt"), ("video/quicktime", "video/x-quicktime"))
    MP4 = ("mp4", "MPEG-4", ("mp4", "m4v"), ("video/mp4",))
    MPG = ("mpg", "MPEG", ("mpg", "mpeg"), ("video/mpeg",))
    PDF = ("pdf", "PDF", ("pdf",), ("application/pdf",))
    PNG = ("png", "PNG", ("png",), ("image/png",))
    SID = ("sid", "MrSID", ("sid",), ("image/x-mrsid", "image/x.mrsid", "image/x-mrsid-image"))
    TIF = ("tif", "TIFF", ("tif", "ptif", "tiff", "tf8", "btf"), ("image/tiff", "image/tif", "image/x-tiff"))
    WEBM = ("webm", "WebM", ("webm",), ("video/webm",))
    WEBP = ("webp", "WebP", ("webp",), ("image/webp",))
    UNKNOWN = ("unknown", "Unknown", (), ("unknown/unknown",))

    # Aliases
    JPEG = JPG
    TIFF = TIF

    def __init__(
        self,
        key: str,
        display_name: str,
        extensions: Tuple[str, ...],
        media_types: Tuple[str, ...],
    ) -> None:
        self.key = key
        self.display_name = display_name
        self.extensions = extensions
        self.media_types = media_types

    @property
    def preferred_extension(self) -> Optional[str]:
        return self.extensions[0] if self.extensions else None

    @property
    def preferred_media_type(self) -> "MediaType":
        return MediaType.parse(self.media_types[0])

    @classmethod
    def for_extension(cls, extension: str) -> "Format":
        return _BY_EXTENSION.get(extension.strip().lstrip(".").lower(), cls.UNKNOWN)

    @classmethod
    def infer_from_identifier(cls, identifier: Union[str, object]) -> "Format":
        """Derive a format from the identifier's trailing extension.

        Examples:
            >>> Format.infer_from_identifier("photo.JPG") is Format.JPEG
            True
            >>> Format.infer_from_identifier("photo") is Format.UNKNOWN
            True
        """

        name = str(identifier).rsplit("/", 1)[-1]
        if "." not in name:
            return cls.UNKNOWN
        return cls.for_extension(name.rsplit(".", 1)[-1])

    def __repr__(self) -> str:
        return f"<Format.{self.name}: {self.display_name}>"


_BY_EXTENSION: Dict[str, Format] = {
    ext: fmt for fmt in Format for ext in fmt.extensions
}
_BY_MEDIA_TYPE: Dict[str, Format] = {
    media_type: fmt for fmt in Format if fmt is not Format.UNKNOWN for media_type in fmt.media_types
}


@dataclass(frozen=True)
class MediaType:
    """Parsed ``type/subtype`` pair from a ``Content-Type`` header."""

    type: str
    subtype: str
    parameters: Mapping[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def parse(cls, value: str) -> "MediaType":
        """Parse a header value such as ``image/jpeg; charset=binary``.

        Raises:
            ValueError: if the value is not a well-formed media type.
        """

        if value is None:
            raise ValueError("media type is missing")
        essence, _, remainder = value.partition(";")
        main, slash, sub = essence.strip().partition("/")
        if not slash or not _TOKEN.match(main) or not _TOKEN.match(sub):
            raise ValueError(f"Invalid media type: {value!r}")

        parameters: Dict[str, str] = {}
        for item in remainder.split(";"):
            item = item.strip()
            if not item:
                continue
            name, equals, param_value = item.partition("=")
            if not equals or not name.strip():
                raise ValueError(f"Invalid media type parameter {item!r} in {value!r}")
            parameters[name.strip().lower()] = param_value.strip().strip('"')
        return cls(main.lower(), sub.lower(), parameters)

    def to_format(self) -> Format:
        return _BY_MEDIA_TYPE.get(str(self), Format.UNKNOWN)

    def __str__(self) -> str:
        return f"{self.type}/{self.subtype}"
