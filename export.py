"""
export.py - Package generated Terraform as a downloadable file

export() wraps text as a UTF-8 payload with a filename and MIME type.
Artifact.save() materializes it; "-" writes to stdout.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Union

EXPORT_FILENAME = "infraq.tf"
EXPORT_MIME_TYPE = "text/plain"


def is_directory_target(destination: Union[str, Path]) -> bool:
    """An existing directory, or a path written with a trailing separator."""
    s = str(destination)
    if s == "-":
        return False
    separators = (os.sep, os.altsep) if os.altsep else (os.sep,)
    return s.endswith(separators) or Path(s).is_dir()


@dataclass(frozen=True)
class Artifact:
    filename: str
    payload: bytes
    mime_type: str = EXPORT_MIME_TYPE

    @property
    def text(self) -> str:
        return self.payload.decode("utf-8")

    def save(self, destination: Union[str, Path] = ".") -> Path:
        """Write the payload.

        destination may be a directory (the artifact's filename is used
        inside it, created when given as "out/"), a file path, or "-" for
        stdout.
        """
        if str(destination) == "-":
            sys.stdout.buffer.write(self.payload)
            sys.stdout.flush()
            return Path("-")

        path = Path(destination)
        if is_directory_target(destination):
            path.mkdir(parents=True, exist_ok=True)
            path = path / self.filename
        path.write_bytes(self.payload)
        return path


def export(text: str, filename: str = EXPORT_FILENAME) -> Artifact:
    return Artifact(filename=filename, payload=text.encode("utf-8"))
