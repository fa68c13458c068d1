"""Config Documents — Pydantic models for documents in the `modules` database.

Invariants:
    - Worker config id is always "module/<workerName>"
    - createdAt is set once at creation; updatedAt refreshed on every write
    - Dumped by alias so the store sees _id/createdAt/updatedAt

Design Decisions:
    - mode="json" dump: datetimes become ISO 8601 strings before hitting the wire
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MODULES_DATABASE = "modules"
GLOBAL_CONFIG_ID = "module/appconfig"


def worker_config_id(worker_name: str) -> str:
    return f"module/{worker_name}"


class ConfigDocument(BaseModel):
    """Per-worker config document."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def require_module_prefix(cls, v: str) -> str:
        if not v.startswith("module/") or v == "module/":
            raise ValueError("config document id must look like module/<name>")
        return v

    @classmethod
    def new(cls, worker_name: str, now: datetime) -> "ConfigDocument":
        """Fresh, empty config document for a worker."""
        return cls(
            id=worker_config_id(worker_name),
            created_at=now,
            updated_at=now,
            config={},
        )

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
