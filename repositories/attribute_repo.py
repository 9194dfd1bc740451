"""
Attribute Repository

Database access for attribute groups and their values, both product-owned
groups and the shared library (groups whose product_id is NULL).

Design Principles:
1. Single Responsibility - Only database access, no business logic
2. Dependency Injection - Receives DatabaseConfig, doesn't create it
3. Domain models out - Returns AttributeGroup / AttributeValue
"""

from typing import Any, Optional
import json
import logging

import pandas as pd
from sqlalchemy import text

from config import DatabaseConfig
from domain import AttributeGroup, AttributeValue
from logging_config import setup_logging
from repositories.base import BaseRepository, new_id

logger = setup_logging(__name__, log_file="attribute_repo.log")

GROUP_FIELDS = ("name", "kind", "ui_mode", "library_group_id", "source", "sort_order", "enabled")
VALUE_FIELDS = ("name", "enabled", "width_mm", "height_mm", "key", "sort_order", "meta")


def _group_record(fields: dict[str, Any]) -> dict[str, Any]:
    record = dict(fields)
    for name in ("kind", "ui_mode"):
        if name in record and hasattr(record[name], "value"):
            record[name] = record[name].value
    if "enabled" in record:
        record["enabled"] = int(bool(record["enabled"]))
    return record


def _value_record(fields: dict[str, Any]) -> dict[str, Any]:
    record = dict(fields)
    if "enabled" in record:
        record["enabled"] = int(bool(record["enabled"]))
    if "meta" in record:
        record["meta"] = json.dumps(record["meta"]) if record["meta"] else None
    return record


class AttributeRepository(BaseRepository):
    """
    Repository for attribute groups and values.

    ## Methods:
    - `get_groups(product_id)`: Groups with values; product_id=None lists the library
    - `get_group(group_id)`: One group with values
    - `create_group(...)` / `update_group(...)` / `delete_group(...)`
    - `create_value(...)` / `update_value(...)` / `set_value_enabled(...)` / `delete_value(...)`
    - `create_group_with_values(...)`: Group plus values in one transaction
    - `reorder_groups(ids)` / `reorder_values(ids)`

    ## Example usage:
    ```python
        repo = AttributeRepository(DatabaseConfig())
        library = repo.get_groups(None)
        gid = repo.create_group("Format", AttributeKind.FORMAT, product_id="p1")
    ```
    """

    def __init__(self, db: DatabaseConfig, logger_instance: Optional[logging.Logger] = None):
        super().__init__(db, logger_instance or logger)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_groups(self, product_id: Optional[str]) -> list[AttributeGroup]:
        """All groups of a product in sort order, or the library when product_id is None."""
        if product_id is None:
            where, params = "g.product_id IS NULL", {}
        else:
            where, params = "g.product_id = :product_id", {"product_id": product_id}

        groups_df = self.read_df(
            f"SELECT * FROM product_attribute_groups g WHERE {where} ORDER BY g.sort_order, g.name",
            params,
        )
        values_df = self.read_df(
            "SELECT v.* FROM product_attribute_values v "
            f"JOIN product_attribute_groups g ON g.id = v.group_id WHERE {where} "
            "ORDER BY v.sort_order, v.name",
            params,
        )
        return self._assemble(groups_df, values_df)

    def get_group(self, group_id: str) -> Optional[AttributeGroup]:
        groups_df = self.read_df(
            "SELECT * FROM product_attribute_groups WHERE id = :id", {"id": group_id}
        )
        if groups_df.empty:
            return None
        values_df = self.read_df(
            "SELECT * FROM product_attribute_values WHERE group_id = :id ORDER BY sort_order, name",
            {"id": group_id},
        )
        return self._assemble(groups_df, values_df)[0]

    def get_value(self, value_id: str) -> Optional[AttributeValue]:
        df = self.read_df("SELECT * FROM product_attribute_values WHERE id = :id", {"id": value_id})
        if df.empty:
            return None
        return AttributeValue.from_dataframe_row(df.iloc[0])

    @staticmethod
    def _assemble(groups_df: pd.DataFrame, values_df: pd.DataFrame) -> list[AttributeGroup]:
        values_by_group: dict[str, list[AttributeValue]] = {}
        for _, row in values_df.iterrows():
            value = AttributeValue.from_dataframe_row(row)
            values_by_group.setdefault(value.group_id, []).append(value)
        return [
            AttributeGroup.from_dataframe_row(row, values_by_group.get(str(row["id"]), []))
            for _, row in groups_df.iterrows()
        ]

    # =========================================================================
    # Groups
    # =========================================================================

    def _next_group_sort(self, product_id: Optional[str]) -> int:
        where = "product_id IS NULL" if product_id is None else "product_id = :product_id"
        df = self.read_df(
            f"SELECT COALESCE(MAX(sort_order), -1) + 1 AS next FROM product_attribute_groups WHERE {where}",
            {"product_id": product_id} if product_id is not None else {},
        )
        return int(df["next"].iloc[0])

    def _next_value_sort(self, group_id: str) -> int:
        df = self.read_df(
            "SELECT COALESCE(MAX(sort_order), -1) + 1 AS next FROM product_attribute_values WHERE group_id = :gid",
            {"gid": group_id},
        )
        return int(df["next"].iloc[0])

    def _insert_group_statement(self, group_id: str, product_id: Optional[str], fields: dict[str, Any]):
        record = _group_record({
            "ui_mode": "buttons",
            "library_group_id": None,
            "source": "product" if product_id else "library",
            "enabled": True,
            **fields,
        })
        record.update({"id": group_id, "product_id": product_id})
        return (
            text(
                "INSERT INTO product_attribute_groups "
                "(id, product_id, name, kind, ui_mode, library_group_id, source, sort_order, enabled) "
                "VALUES (:id, :product_id, :name, :kind, :ui_mode, :library_group_id, :source, :sort_order, :enabled)"
            ),
            record,
        )

    def create_group(self, name: str, kind, product_id: Optional[str] = None, **fields) -> str:
        """Insert a group and return its id."""
        group_id = new_id()
        fields.setdefault("sort_order", self._next_group_sort(product_id))
        self.execute_many([self._insert_group_statement(group_id, product_id, {"name": name, "kind": kind, **fields})])
        self._logger.info(f"Created attribute group {name!r} ({group_id}) for product {product_id}")
        return group_id

    def create_group_with_values(
        self,
        name: str,
        kind,
        product_id: Optional[str],
        values: list[dict[str, Any]],
        **fields,
    ) -> str:
        """Insert a group and its values in one transaction; returns the group id."""
        group_id = new_id()
        fields.setdefault("sort_order", self._next_group_sort(product_id))
        statements = [self._insert_group_statement(group_id, product_id, {"name": name, "kind": kind, **fields})]
        records = [
            self._value_params(group_id, {**value, "sort_order": value.get("sort_order", index)})
            for index, value in enumerate(values)
        ]
        statements.append((self._INSERT_VALUE, records))
        self.execute_many(statements)
        self._logger.info(f"Created group {name!r} with {len(records)} values for product {product_id}")
        return group_id

    def update_group(self, group_id: str, **fields) -> None:
        updates = _group_record({k: v for k, v in fields.items() if k in GROUP_FIELDS})
        if not updates:
            return
        assignments = ", ".join(f"{k} = :{k}" for k in updates)
        self.execute(
            text(f"UPDATE product_attribute_groups SET {assignments} WHERE id = :id"),
            {**updates, "id": group_id},
        )

    def delete_group(self, group_id: str) -> None:
        """Delete a group together with its values."""
        self.execute_many([
            (text("DELETE FROM product_attribute_values WHERE group_id = :id"), {"id": group_id}),
            (text("DELETE FROM product_attribute_groups WHERE id = :id"), {"id": group_id}),
        ])
        self._logger.info(f"Deleted attribute group {group_id}")

    def reorder_groups(self, ordered_ids: list[str]) -> None:
        self.execute(
            text("UPDATE product_attribute_groups SET sort_order = :sort_order WHERE id = :id"),
            [{"id": gid, "sort_order": index} for index, gid in enumerate(ordered_ids)],
        )

    # =========================================================================
    # Values
    # =========================================================================

    _INSERT_VALUE = text(
        "INSERT INTO product_attribute_values "
        "(id, group_id, name, enabled, width_mm, height_mm, key, sort_order, meta) "
        "VALUES (:id, :group_id, :name, :enabled, :width_mm, :height_mm, :key, :sort_order, :meta)"
    )

    @staticmethod
    def _value_params(group_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        record = _value_record({
            "enabled": True,
            "width_mm": None,
            "height_mm": None,
            "key": None,
            "sort_order": 0,
            "meta": None,
            **{k: v for k, v in fields.items() if k in VALUE_FIELDS},
        })
        record.update({"id": fields.get("id") or new_id(), "group_id": group_id})
        return record

    def create_value(self, group_id: str, name: str, **fields) -> str:
        fields.setdefault("sort_order", self._next_value_sort(group_id))
        params = self._value_params(group_id, {"name": name, **fields})
        self.execute(self._INSERT_VALUE, params)
        return params["id"]

    def update_value(self, value_id: str, **fields) -> None:
        updates = _value_record({k: v for k, v in fields.items() if k in VALUE_FIELDS})
        if not updates:
            return
        assignments = ", ".join(f"{k} = :{k}" for k in updates)
        self.execute(
            text(f"UPDATE product_attribute_values SET {assignments} WHERE id = :id"),
            {**updates, "id": value_id},
        )

    def set_value_enabled(self, value_id: str, enabled: bool) -> None:
        self.update_value(value_id, enabled=enabled)

    def delete_value(self, value_id: str) -> None:
        self.execute(text("DELETE FROM product_attribute_values WHERE id = :id"), {"id": value_id})

    def reorder_values(self, ordered_ids: list[str]) -> None:
        self.execute(
            text("UPDATE product_attribute_values SET sort_order = :sort_order WHERE id = :id"),
            [{"id": vid, "sort_order": index} for index, vid in enumerate(ordered_ids)],
        )


def get_attribute_repository() -> AttributeRepository:
    """
    Get or create an AttributeRepository instance.

    Uses state.get_service for session state persistence across reruns.
    Falls back to direct instantiation if state module unavailable.
    """
    def _create_attribute_repository() -> AttributeRepository:
        logger.debug("Creating AttributeRepository instance")
        return AttributeRepository(DatabaseConfig())

    try:
        from state import get_service
        return get_service('attribute_repository', _create_attribute_repository)
    except ImportError:
        logger.debug("state module unavailable, creating new AttributeRepository instance")
        return _create_attribute_repository()
