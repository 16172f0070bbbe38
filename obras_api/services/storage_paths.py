from __future__ import annotations

import re
import time
import uuid
from pathlib import PurePosixPath
from typing import Callable, Optional

MAX_OBJECT_NAME_LENGTH = 120
MAX_EMPLOYEE_BASE_LENGTH = 60

_OBRA_FOLDERS = {"contract": "contracts", "quote": "quotes"}


def sanitize_object_name(file_name: str, max_length: int = MAX_OBJECT_NAME_LENGTH) -> str:
    """Whitespace becomes ``_``; anything outside ``[A-Za-z0-9_.-]`` is dropped."""
    name = (file_name or "").replace("\\", "/").split("/")[-1].strip()
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"[^\w.\-]+", "", name, flags=re.ASCII)
    name = name.lstrip(".")[:max_length]
    return name or "archivo"


def safe_extension(file_name: str) -> str:
    suffix = PurePosixPath(file_name or "").suffix.lower()
    cleaned = re.sub(r"[^a-z0-9]", "", suffix)
    return f".{cleaned}" if cleaned else ""


def sanitize_base_name(file_name: str, max_length: int = MAX_EMPLOYEE_BASE_LENGTH) -> str:
    base = PurePosixPath((file_name or "").replace("\\", "/")).name
    base = re.sub(r"\.[^/.]+$", "", base).lower().strip()
    base = re.sub(r"\s+", "-", base)
    base = re.sub(r"[^a-z0-9_-]", "", base)
    return base[:max_length] or "archivo"


def obra_type_folder(doc_type: str) -> str:
    return _OBRA_FOLDERS.get(doc_type, "other")


def build_obra_object_path(
    obra_id: uuid.UUID | str,
    doc_type: str,
    file_name: str,
    token: Optional[str] = None,
) -> str:
    token = token or str(uuid.uuid4())
    return f"obras/{obra_id}/{obra_type_folder(doc_type)}/{token}_{sanitize_object_name(file_name)}"


def build_employee_object_path(
    employee_id: uuid.UUID | str,
    doc_type: str,
    file_name: str,
    clock: Callable[[], float] = time.time,
) -> str:
    # Millisecond stamp plus a short random suffix keeps same-millisecond uploads apart.
    stamp = f"{int(clock() * 1000)}{uuid.uuid4().hex[:6]}"
    return f"employees/{employee_id}/{doc_type}/{stamp}-{sanitize_base_name(file_name)}{safe_extension(file_name)}"
