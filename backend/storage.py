"""Local blob store for uploaded files.

Files are saved under a generated name and that name is the only reference the
rest of the application keeps.
"""

import logging
import os
import shutil
import time

from fastapi import UploadFile

from backend.core.errors import InvalidInput, StorageFailure

logger = logging.getLogger(__name__)


class LocalBlobStore:
    def __init__(self, root: str) -> None:
        self.root = root

    def generate_name(self, original_filename: str, millis: int | None = None) -> str:
        basename = os.path.basename(original_filename.replace('\\', '/'))
        if millis is None:
            millis = int(time.time() * 1000)
        return f'{millis}_{basename}'

    def path_for(self, name: str) -> str:
        return os.path.join(self.root, os.path.basename(name))

    def save(self, upload: UploadFile) -> str:
        if upload is None or not upload.filename or not os.path.basename(upload.filename.replace('\\', '/')):
            raise InvalidInput('Please choose a file to upload.')

        millis = int(time.time() * 1000)
        name = self.generate_name(upload.filename, millis)
        try:
            os.makedirs(self.root, exist_ok=True)
            while True:
                try:
                    buffer = open(self.path_for(name), 'xb')
                except FileExistsError:
                    # Same name in the same millisecond; never overwrite another upload.
                    millis += 1
                    name = self.generate_name(upload.filename, millis)
                    continue
                with buffer:
                    shutil.copyfileobj(upload.file, buffer)
                break
        except OSError as exc:
            logger.exception('Could not store upload %s', name)
            raise StorageFailure() from exc
        return name

    def delete(self, name: str) -> None:
        try:
            os.remove(self.path_for(name))
        except FileNotFoundError:
            logger.warning('Upload %s was already gone', name)
