"""Bulk export and import of credentials as JSON."""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError
import structlog

from .manager import CredentialManager
from .storage import Status

logger = structlog.get_logger(__name__)

PathLike = Union[str, os.PathLike]


class ExportRecord(BaseModel):
    """Serialized projection of a credential."""

    model_config = ConfigDict(extra="ignore")

    account: StrictStr = Field(min_length=1)
    password: StrictStr


class ExportResult(BaseModel):
    """Outcome of an export run."""

    path: Path
    success: bool
    exported: int = 0
    skipped: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success


class ImportResult(BaseModel):
    """Outcome of an import run."""

    path: Path
    success: bool
    imported: List[str] = Field(default_factory=list)
    failed: Dict[str, int] = Field(default_factory=dict)
    skipped: int = 0
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success


def export_items(manager: CredentialManager, file_path: PathLike) -> ExportResult:
    """Write every account and password in scope to a JSON file.

    Accounts whose password cannot be read are left out and listed in
    ``ExportResult.skipped``. Nothing is written when the scope is empty.
    """
    path = Path(file_path)
    accounts = manager.get_item_list()
    if not accounts:
        logger.warning("export_empty", service=manager.service_name)
        return ExportResult(path=path, success=False, error="No items to export.")

    records: List[ExportRecord] = []
    skipped: List[str] = []
    for account in accounts:
        password = manager.get_password(account)
        if password is None:
            skipped.append(account)
            continue
        try:
            records.append(ExportRecord(account=account, password=password))
        except ValidationError:
            logger.warning("export_record_invalid", service=manager.service_name)
            skipped.append(account)

    payload = json.dumps([r.model_dump() for r in records], indent=2, ensure_ascii=False)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            # O_CREAT mode is ignored for a file that already exists
            os.chmod(path, 0o600)
            f.write(payload)
    except OSError as e:
        logger.error("export_write_failed", path=str(path), error=str(e))
        return ExportResult(path=path, success=False, skipped=skipped, error=str(e))

    logger.info("exported_items", path=str(path), count=len(records), skipped=len(skipped))
    return ExportResult(path=path, success=True, exported=len(records), skipped=skipped)


def import_items(manager: CredentialManager, file_path: PathLike) -> ImportResult:
    """Add every well-formed record of a JSON export file to the store.

    Malformed entries are counted in ``ImportResult.skipped``; entries the
    backend rejects are kept in ``ImportResult.failed`` with their status.
    """
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("import_read_failed", path=str(path), error=str(e))
        return ImportResult(path=path, success=False, error=str(e))

    if not isinstance(data, list):
        logger.error("import_invalid_format", path=str(path))
        return ImportResult(path=path, success=False, error="Invalid JSON format")

    result = ImportResult(path=path, success=True)
    for entry in data:
        try:
            record = ExportRecord.model_validate(entry)
        except ValidationError:
            result.skipped += 1
            continue

        status = manager.add_item(record.account, record.password)
        logger.info("imported_item", account=record.account, status=int(status))
        if status == Status.SUCCESS:
            result.imported.append(record.account)
        else:
            result.failed[record.account] = int(status)

    return result
