import json
from pathlib import Path
from typing import Any


def user_document(
    oid: str,
    name: str | None = "Ana",
    last_name: str | None = "Garcia",
    email: str | None = None,
    phone: str | None = None,
    is_active: bool = True,
    **extra: Any,
) -> dict[str, Any]:
    """Build a roster entry the way it appears in the JSON file."""
    document = {
        "id": {"$oid": oid},
        "name": name,
        "lastName": last_name,
        "email": email if email is not None else f"{oid}@academy.test",
        "phone": phone,
        "isActive": is_active,
    }
    document.update(extra)
    return document


def numbered_documents(count: int) -> list[dict[str, Any]]:
    """``count`` distinct users whose names encode their position."""
    return [
        user_document(
            f"{i:024x}",
            name=f"Student{i}",
            last_name=f"Family{i}",
            email=f"student{i}@academy.test",
        )
        for i in range(count)
    ]


def write_roster(path: Path, documents: list[dict[str, Any]]) -> Path:
    path.write_text(json.dumps(documents, indent=2), encoding="utf-8")
    return path


def read_roster(path: Path) -> list[dict[str, Any]]:
    return json.loads(path.read_text(encoding="utf-8"))
