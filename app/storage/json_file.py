"""JSON file storage, used standalone or as the local cache behind SQL"""
import os
from pathlib import Path
from typing import List, Union

from pydantic import TypeAdapter, ValidationError

from app.schemas.lead import LeadRecord
from app.schemas.user import UserRecord
from app.storage.memory import MemoryStorage
from app.utils.logger import logger

LEADS_FILE = "leads.json"
USERS_FILE = "users.json"

_leads_adapter = TypeAdapter(List[LeadRecord])
_users_adapter = TypeAdapter(List[UserRecord])


class JSONFileStorage(MemoryStorage):
    """
    Memory store mirrored to `leads.json` and `users.json`.

    Files hold camelCase records with ISO-8601 timestamps. Every write
    rewrites both files through a temp file so a crash never leaves half a
    document behind.
    """

    name = "file"

    def __init__(self, data_dir: Union[str, Path]):
        super().__init__()
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._load()

    @property
    def leads_path(self) -> Path:
        return self.data_dir / LEADS_FILE

    @property
    def users_path(self) -> Path:
        return self.data_dir / USERS_FILE

    def _load(self) -> None:
        for lead in self._read(self.leads_path, _leads_adapter):
            self._leads[lead.id] = lead
        for user in self._read(self.users_path, _users_adapter):
            self._users[user.id] = user
        logger.info(
            f"Loaded {len(self._leads)} leads and {len(self._users)} users from {self.data_dir}"
        )

    @staticmethod
    def _read(path: Path, adapter: TypeAdapter) -> list:
        if not path.exists():
            return []
        try:
            return adapter.validate_json(path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.error(f"Error reading {path}: {e}")
            return []

    def _persist(self) -> None:
        self._write(self.leads_path, _leads_adapter.dump_json(list(self._leads.values()), by_alias=True, indent=2))
        self._write(self.users_path, _users_adapter.dump_json(list(self._users.values()), by_alias=True, indent=2))

    @staticmethod
    def _write(path: Path, payload: bytes) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_bytes(payload)
        os.replace(tmp_path, path)
