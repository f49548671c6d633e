# portal/store.py
"""
Flat-file record store.

Every collection lives in memory as a list of plain dicts and is mirrored to
its own JSON array file after each mutation. Writes go through a temp file
and ``os.replace`` so a crash mid-serialisation leaves the previous file in
place rather than a truncated one.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

log = logging.getLogger(__name__)


class JsonCollection:
    def __init__(
        self,
        name: str,
        path: str,
        lock: threading.RLock,
        seed: Optional[Callable[[], List[Dict[str, Any]]]] = None,
    ):
        self.name = name
        self.path = path
        self._lock = lock
        self._seed = seed
        self._records: List[Dict[str, Any]] = []

    # ---------- persistence ----------
    def load(self) -> List[Dict[str, Any]]:
        records: Optional[list] = None
        if os.path.exists(self.path):
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, list):
                    records = data
                    log.info("Loaded %d %s from %s", len(records), self.name, self.path)
                else:
                    log.error("%s does not hold a JSON array; ignoring it", self.path)
            except (OSError, ValueError) as e:
                log.error("Error loading %s from %s: %s", self.name, self.path, e)

        if records is None:
            records = self._seed() if self._seed else []
            if records:
                log.info("Using %d seeded %s", len(records), self.name)
        with self._lock:
            self._records = records
        return self._records

    def save(self) -> None:
        with self._lock:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            tmp = f"{self.path}.tmp"
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self._records, f, indent=2, default=str)
            os.replace(tmp, self.path)
        log.debug("Saved %d %s to %s", len(self._records), self.name, self.path)

    # ---------- queries ----------
    def all(self) -> List[Dict[str, Any]]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def find(self, **match: Any) -> Optional[Dict[str, Any]]:
        for rec in self._records:
            if all(rec.get(k) == v for k, v in match.items()):
                return rec
        return None

    def filter(self, **match: Any) -> List[Dict[str, Any]]:
        return [r for r in self._records if all(r.get(k) == v for k, v in match.items())]

    # ---------- mutations (each one flushes) ----------
    def add(self, record: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._records.append(record)
            self.save()
        return record

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Shallow-merge ``changes`` into the record with ``id == record_id``."""
        with self._lock:
            rec = self.find(id=record_id)
            if rec is None:
                return None
            rec.update(changes)
            self.save()
        return rec

    def extend(self, records: Iterable[Dict[str, Any]]) -> None:
        with self._lock:
            self._records.extend(records)
            self.save()


def default_investors() -> List[Dict[str, Any]]:
    return [
        {
            "id": "test-investor-1",
            "name": "Test Investor",
            "email": "investor1@test.com",
            "phone": "+1234567890",
            "nationality": "UAE",
            "birthDate": "1990-01-01",
            "password": "test123",
            "googleDriveFolderId": None,
            "personalDocsFolderId": None,
        }
    ]


class RecordStore:
    """The four collections the portal persists."""

    def __init__(self, data_dir: Optional[str] = None):
        self.lock = threading.RLock()
        self.configure(data_dir or os.path.abspath("./data"))

    def init_app(self, app) -> None:
        self.configure(app.config["DATA_DIR"])
        self.load()
        app.extensions["record_store"] = self

    def configure(self, data_dir: str) -> None:
        self.data_dir = data_dir
        self.investors = JsonCollection(
            "investors", os.path.join(data_dir, "investors.json"), self.lock, seed=default_investors
        )
        self.units = JsonCollection("units", os.path.join(data_dir, "units.json"), self.lock)
        self.documents = JsonCollection("documents", os.path.join(data_dir, "documents.json"), self.lock)
        self.orders = JsonCollection("orders", os.path.join(data_dir, "orders.json"), self.lock)

    def load(self) -> "RecordStore":
        os.makedirs(self.data_dir, exist_ok=True)
        for coll in (self.investors, self.units, self.documents, self.orders):
            coll.load()
        return self

    def counts(self) -> Dict[str, int]:
        return {
            "investors": len(self.investors),
            "units": len(self.units),
            "documents": len(self.documents),
            "orders": len(self.orders),
        }
