# letmein/client/document.py
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from letmein.core.errors import DocumentError, DocumentExistsError, DocumentNotFoundError
from letmein.core.models import Client

logger = logging.getLogger(__name__)


class DocumentStore:
    """Reads and replaces the whole client JSON document."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def ensure_absent(self):
        if self.path.exists():
            raise DocumentExistsError(
                f"profile data already exists; delete {self.path} to reset and start over")

    def load(self) -> Client:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise DocumentNotFoundError(
                "no profile data found: you must run the init command first") from e
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentError(f"error reading {self.path}: {e}") from e

        try:
            client = Client.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise DocumentError(f"error parsing {self.path}: {e}") from e

        logger.debug("loaded %d profiles from %s", len(client.profiles), self.path)
        return client

    def save(self, client: Client):
        raw = json.dumps(client.to_document(), indent=4, ensure_ascii=False) + "\n"
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(raw)
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as e:
            raise DocumentError(f"error writing {self.path}: {e}") from e

        logger.debug("wrote %d profiles to %s", len(client.profiles), self.path)
