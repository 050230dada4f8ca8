import logging
import os
import secrets
import time

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"


class StorageError(Exception):
    pass


class LocalStorage:
    """Stores uploads on local disk under random names.

    Locations handed out look like ``/uploads/poly-<millis>-<hex>.pdf`` and are
    the only handle callers keep; the client filename is never used.
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)

    def _new_name(self, suffix: str) -> str:
        return f"poly-{int(time.time() * 1000)}-{secrets.token_hex(6)}{suffix}"

    def path_for(self, location: str) -> str:
        if not location.startswith(URL_PREFIX):
            raise StorageError(f"Unknown storage location: {location}")
        name = location[len(URL_PREFIX):]
        path = os.path.abspath(os.path.join(self.root, name))
        if os.path.dirname(path) != self.root:
            raise StorageError(f"Storage location escapes upload root: {location}")
        return path

    def write(self, content: bytes, suffix: str = ".pdf") -> str:
        name = self._new_name(suffix)
        path = os.path.join(self.root, name)
        try:
            # "xb" refuses to clobber an existing file
            with open(path, "xb") as f:
                f.write(content)
        except OSError as exc:
            if os.path.exists(path):
                os.remove(path)
            raise StorageError(f"Could not write {name}: {exc}") from exc
        return URL_PREFIX + name

    def exists(self, location: str) -> bool:
        return os.path.isfile(self.path_for(location))

    def delete(self, location: str) -> bool:
        """Remove the file; returns False when it was already gone."""
        try:
            os.remove(self.path_for(location))
        except FileNotFoundError:
            return False
        return True
