from __future__ import annotations


class MockupError(Exception):
    pass


class LoadError(MockupError):
    """The garment or design image source could not be reached."""


class DecodeError(MockupError):
    """Bytes were obtained but are not a decodable raster image."""


class InvalidColorError(MockupError, ValueError):
    pass


class EncodeError(MockupError):
    pass


class UnknownGarmentError(MockupError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown garment"
