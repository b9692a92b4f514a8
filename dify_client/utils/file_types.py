"""Content-based file type detection for uploads.

Upload types are decided from the leading bytes of the payload, never from a
caller-supplied filename.
"""

from dataclasses import dataclass

OCTET_STREAM = "application/octet-stream"


@dataclass(frozen=True)
class FileKind:
    """Detected type of a binary payload."""

    extension: str
    mime_type: str
    category: str  # "image", "audio" or "video"


PNG = FileKind("png", "image/png", "image")
JPEG = FileKind("jpg", "image/jpeg", "image")
GIF = FileKind("gif", "image/gif", "image")
WEBP = FileKind("webp", "image/webp", "image")
BMP = FileKind("bmp", "image/bmp", "image")
MP3 = FileKind("mp3", "audio/mpeg", "audio")
WAV = FileKind("wav", "audio/x-wav", "audio")
M4A = FileKind("m4a", "audio/m4a", "audio")
OGG = FileKind("ogg", "audio/ogg", "audio")
FLAC = FileKind("flac", "audio/x-flac", "audio")
AMR = FileKind("amr", "audio/amr", "audio")
MP4 = FileKind("mp4", "video/mp4", "video")
WEBM = FileKind("webm", "video/webm", "video")

# Formats the service accepts for each upload endpoint
UPLOAD_IMAGE_KINDS = frozenset({PNG, JPEG, GIF, WEBP})
AUDIO_TO_TEXT_KINDS = frozenset({MP3, WAV, M4A, MP4, WEBM})

# ISO base media major brands; other ftyp files (HEIC, AVIF, QuickTime) are not MP4
_M4A_BRANDS = (b"M4A ", b"M4B ")
_MP4_BRANDS = (b"isom", b"iso2", b"iso4", b"iso5", b"iso6", b"mp41", b"mp42", b"avc1", b"dash", b"M4V ", b"MSNV")


def sniff(data: bytes) -> FileKind | None:
    """Detect the type of a payload from its magic number.

    Args:
        data: Payload bytes (only the first few dozen are inspected)

    Returns:
        The detected FileKind, or None if the prefix is not recognised
    """
    head = bytes(data[:32])

    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return PNG
    if head.startswith(b"\xff\xd8\xff"):
        return JPEG
    if head.startswith((b"GIF87a", b"GIF89a")):
        return GIF
    if head.startswith(b"BM") and len(head) >= 14:
        return BMP
    if head.startswith(b"RIFF") and len(head) >= 12:
        if head[8:12] == b"WEBP":
            return WEBP
        if head[8:12] == b"WAVE":
            return WAV
    if len(head) >= 12 and head[4:8] == b"ftyp":
        brand = head[8:12]
        if brand in _M4A_BRANDS:
            return M4A
        if brand in _MP4_BRANDS:
            return MP4
        return None
    if head.startswith(b"ID3"):
        return MP3
    # MPEG audio frame sync: 11 set bits, layer III
    if len(head) >= 2 and head[0] == 0xFF and head[1] in (0xFB, 0xF3, 0xF2):
        return MP3
    if head.startswith(b"OggS"):
        return OGG
    if head.startswith(b"fLaC"):
        return FLAC
    if head.startswith(b"#!AMR"):
        return AMR
    if head.startswith(b"\x1a\x45\xdf\xa3"):
        return WEBM
    return None


def is_image(data: bytes) -> bool:
    """Check whether the payload is an image format accepted for upload."""
    return sniff(data) in UPLOAD_IMAGE_KINDS


def is_audio(data: bytes) -> bool:
    """Check whether the payload is an audio format accepted for transcription."""
    return sniff(data) in AUDIO_TO_TEXT_KINDS


def mime_type_for(data: bytes) -> str:
    """MIME type for a payload, falling back to application/octet-stream."""
    kind = sniff(data)
    return kind.mime_type if kind else OCTET_STREAM
