"""Content sources that slice file content by byte range."""

from largeupload.content.base import ContentSource
from largeupload.content.buffer import BufferUpload
from largeupload.content.file import FileUpload
from largeupload.content.stream import StreamUpload

__all__ = ["ContentSource", "BufferUpload", "FileUpload", "StreamUpload"]
