"""References to binary media content."""

from dataclasses import dataclass

__all__ = ["BytesRef", "MediaRef", "PlatformFileRef", "UrlRef", "blank_to_none"]


def blank_to_none(value: str | None) -> str | None:
    """Normalize blank optional strings to None."""
    if value is None or not value.strip():
        return None
    return value


@dataclass(frozen=True, slots=True)
class UrlRef:
    """Media referenced by a remote URL."""

    url: str

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise ValueError("url must not be blank")


@dataclass(frozen=True, slots=True)
class PlatformFileRef:
    """Media referenced by a platform-native file id (e.g. a Telegram file_id)."""

    platform: str
    file_id: str

    def __post_init__(self) -> None:
        if not self.platform or not self.platform.strip():
            raise ValueError("platform must not be blank")
        if not self.file_id or not self.file_id.strip():
            raise ValueError("file_id must not be blank")


@dataclass(frozen=True, slots=True)
class BytesRef:
    """Media held in memory."""

    data: bytes
    name: str | None = None
    mime: str | None = None

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("data must not be empty")
        # bytearray/memoryview are copied into an immutable bytes object
        object.__setattr__(self, "data", bytes(self.data))
        object.__setattr__(self, "name", blank_to_none(self.name))
        object.__setattr__(self, "mime", blank_to_none(self.mime))

    def __repr__(self) -> str:
        return f"BytesRef(name={self.name!r}, mime={self.mime!r}, size={len(self.data)})"


MediaRef = UrlRef | PlatformFileRef | BytesRef
