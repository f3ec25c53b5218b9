#!/usr/bin/env python3

import os
import logging
from typing import Iterable

from ..errors import ConfigError, FileOpenError, WriteError

logger = logging.getLogger(__name__)

# Append, create, refuse an existing file, write only
OUTPUT_FLAGS = os.O_APPEND | os.O_CREAT | os.O_EXCL | os.O_WRONLY
OUTPUT_MODE = 0o600

class StorageManager:
    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def open_output(self, path: str):
        """Create the output file, failing if it already exists"""
        if not path:
            raise ConfigError("No output file specified!")

        try:
            fd = os.open(path, OUTPUT_FLAGS, OUTPUT_MODE)
        except OSError as e:
            raise FileOpenError(f"Failed to open file {path}: {e}") from e

        return os.fdopen(fd, "w", encoding=self.encoding, newline="")

    def write_mirrorlist(self, path: str, lines: Iterable[str]) -> int:
        """Write all lines to a new file and return the number of bytes written"""
        written = 0
        with self.open_output(path) as f:
            try:
                for line in lines:
                    f.write(line)
                    written += len(line.encode(self.encoding))
                f.flush()
            except OSError as e:
                raise WriteError(f"Failed writing mirrorlist to {path}: {e}") from e

        logger.info(f"Wrote {written} bytes to {path}")
        return written
