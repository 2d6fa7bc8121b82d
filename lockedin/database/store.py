#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Locked In - JSON Persistence Store
Block-list and session history documents

Two independent JSON files under the data directory. Reads never fail: a
missing file is an empty collection and a corrupted one is quarantined into
the backup directory before starting fresh. Writes replace the whole document
through a temporary file and report failure by return value; callers keep
their in-memory state authoritative and simply try again on the next change.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from lockedin.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)

BLOCK_LIST_FILE = 'blocklist.json'
HISTORY_FILE = 'sessions.json'


class JsonStore:
    """Durable storage for the block-list and session history"""

    def __init__(self, data_dir, backup_dir=None,
                 block_list_file: str = BLOCK_LIST_FILE,
                 history_file: str = HISTORY_FILE):
        self.data_dir = Path(data_dir)
        self.backup_dir = Path(backup_dir) if backup_dir else self.data_dir / 'backups'
        self.block_list_path = self.data_dir / block_list_file
        self.history_path = self.data_dir / history_file

        # Metrics
        self.save_count = 0
        self.failed_saves = 0
        self.last_save: Optional[str] = None

    # ===== BLOCK-LIST =====

    def load_block_list(self) -> Set[str]:
        """Load the block-list, empty on any failure"""
        data = self._load_document(self.block_list_path, list)
        names = {str(name).strip().lower() for name in data if str(name).strip()}
        logger.info(f"🚫 Loaded {len(names)} blocked applications")
        return names

    def save_block_list(self, names: Iterable[str]) -> bool:
        return self._save_document(self.block_list_path, sorted(set(names)))

    # ===== SESSION HISTORY =====

    def load_history(self) -> List[Dict[str, Any]]:
        """Load every stored session record, empty on any failure"""
        data = self._load_document(self.history_path, list)
        records = [record for record in data if isinstance(record, dict)]
        if len(records) != len(data):
            logger.warning(f"⚠️ Skipped {len(data) - len(records)} malformed session records")
        logger.info(f"📂 Loaded {len(records)} existing sessions")
        return records

    def save_history(self, records: List[Dict[str, Any]]) -> bool:
        return self._save_document(self.history_path, list(records))

    # ===== INTERNALS =====

    def _read(self, path: Path, expected_type: type):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceFailure(f"{path.name} is not valid JSON: {e}") from e
        except OSError as e:
            raise PersistenceFailure(f"cannot read {path}: {e}") from e

        if not isinstance(data, expected_type):
            raise PersistenceFailure(
                f"{path.name} holds {type(data).__name__}, expected {expected_type.__name__}"
            )
        return data

    def _load_document(self, path: Path, expected_type: type):
        if not path.exists():
            logger.info(f"📂 {path.name} not found, starting fresh")
            return expected_type()

        try:
            return self._read(path, expected_type)
        except PersistenceFailure as e:
            logger.error(f"❌ Failed to load {path.name}: {e}")
            self._quarantine(path)
            return expected_type()

    def _quarantine(self, path: Path) -> None:
        """Move an unreadable document aside so the next save starts clean"""
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_name = f"corrupted_{path.stem}_{datetime.now().strftime('%Y%m%d_%H%M%S')}{path.suffix}"
            backup_path = self.backup_dir / backup_name
            path.replace(backup_path)
            logger.warning(f"🔄 Corrupted file moved to {backup_path}")
        except OSError as e:
            logger.error(f"❌ Could not move corrupted file {path}: {e}")

    def _write(self, path: Path, data) -> None:
        temp_file = path.with_suffix('.tmp')
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            temp_file.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(f"cannot write {path}: {e}") from e

    def _save_document(self, path: Path, data) -> bool:
        try:
            self._write(path, data)
        except PersistenceFailure as e:
            self.failed_saves += 1
            logger.error(f"❌ Failed to save {path.name}: {e}")
            return False

        self.save_count += 1
        self.last_save = datetime.now().isoformat()
        logger.debug(f"💾 Saved {path.name}")
        return True

    def get_stats(self) -> Dict[str, Any]:
        return {
            'save_count': self.save_count,
            'failed_saves': self.failed_saves,
            'last_save': self.last_save,
            'block_list_path': str(self.block_list_path),
            'history_path': str(self.history_path)
        }
