"""
Attribute Service

Business operations on attribute groups and values: validation, library
copies, duplication and ordering. Storage is delegated to
AttributeRepository.

Design Principles:
1. Dependency Injection - Receives AttributeRepository
2. Service Layer - Validates input and raises typed errors
3. Clean separation - No UI dependencies
"""

from typing import Optional
import logging

from domain import (
    AttributeGroup,
    AttributeKind,
    NotFoundError,
    UiMode,
    ValidationError,
)
from logging_config import setup_logging
from repositories.attribute_repo import AttributeRepository

logger = setup_logging(__name__, log_file="attribute_service.log")


def _value_fields(value) -> dict:
    return {
        "name": value.name,
        "key": value.key,
        "enabled": value.enabled,
        "width_mm": value.width_mm,
        "height_mm": value.height_mm,
        "meta": value.meta,
        "sort_order": value.sort_order,
    }


def _check_dimensions(width_mm: Optional[float], height_mm: Optional[float]) -> None:
    for label, size in (("Bredde", width_mm), ("Højde", height_mm)):
        if size is not None and size <= 0:
            raise ValidationError(f"{label} skal være større end 0 mm")


class AttributeService:
    """
    Attribute groups and values for products and the shared library.

    Example:
        service = AttributeService.create_default()
        gid = service.create_group("p1", "Format", "format")
        service.add_value(gid, "A4", width_mm=210, height_mm=297)
    """

    def __init__(self, repo: AttributeRepository, logger_instance: Optional[logging.Logger] = None):
        self._repo = repo
        self._logger = logger_instance or logger

    @classmethod
    def create_default(cls) -> "AttributeService":
        from repositories.attribute_repo import get_attribute_repository
        return cls(get_attribute_repository())

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def product_groups(self, product_id: str) -> list[AttributeGroup]:
        return self._repo.get_groups(product_id)

    def library_groups(self) -> list[AttributeGroup]:
        return self._repo.get_groups(None)

    def require_group(self, group_id: str) -> AttributeGroup:
        group = self._repo.get_group(group_id)
        if group is None:
            raise NotFoundError(f"Attributgruppe {group_id} findes ikke")
        return group

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def create_group(
        self,
        product_id: Optional[str],
        name: str,
        kind: AttributeKind | str,
        ui_mode: UiMode | str = UiMode.BUTTONS,
    ) -> str:
        """Create a group on a product, or in the library when product_id is None."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Gruppen skal have et navn")
        try:
            kind = kind if isinstance(kind, AttributeKind) else AttributeKind.from_string(kind)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        ui_mode = ui_mode if isinstance(ui_mode, UiMode) else UiMode.from_string(ui_mode)
        return self._repo.create_group(name, kind, product_id=product_id, ui_mode=ui_mode)

    def update_group(self, group_id: str, **fields) -> None:
        if "name" in fields:
            fields["name"] = (fields["name"] or "").strip()
            if not fields["name"]:
                raise ValidationError("Gruppen skal have et navn")
        if "kind" in fields and not isinstance(fields["kind"], AttributeKind):
            fields["kind"] = AttributeKind.from_string(fields["kind"])
        if "ui_mode" in fields and not isinstance(fields["ui_mode"], UiMode):
            fields["ui_mode"] = UiMode.from_string(fields["ui_mode"])
        self._repo.update_group(group_id, **fields)

    def delete_group(self, group_id: str) -> None:
        self._repo.delete_group(group_id)

    def add_from_library(self, product_id: str, library_group_id: str) -> str:
        """
        Copy a library group and its values into a product.

        Values sharing name and dimensions are copied once. The copy keeps
        a reference to the library group and is marked source="library".

        Returns:
            Id of the new product group
        """
        library_group = self.require_group(library_group_id)
        if not library_group.is_library:
            raise ValidationError(f"{library_group.name} er ikke en biblioteksgruppe")

        seen: set[str] = set()
        values = []
        for value in library_group.values:
            if value.dedup_key in seen:
                continue
            seen.add(value.dedup_key)
            values.append(_value_fields(value))

        group_id = self._repo.create_group_with_values(
            library_group.name,
            library_group.kind,
            product_id,
            values,
            ui_mode=library_group.ui_mode,
            library_group_id=library_group.id,
            source="library",
        )
        self._logger.info(
            f"Copied library group {library_group.name!r} to product {product_id}: "
            f"{len(values)} of {len(library_group.values)} values"
        )
        return group_id

    def duplicate_group(self, group_id: str) -> str:
        """Copy a group with its values onto the same owner, named "<name> (kopi)"."""
        group = self.require_group(group_id)
        return self._repo.create_group_with_values(
            f"{group.name} (kopi)",
            group.kind,
            group.product_id,
            [_value_fields(v) for v in group.values],
            ui_mode=group.ui_mode,
            library_group_id=group.library_group_id,
            source=group.source,
        )

    def move_group(self, groups: list[AttributeGroup], group_id: str, offset: int) -> None:
        """Move a group up (-1) or down (+1) within the given ordering."""
        ids = [g.id for g in groups]
        self._repo.reorder_groups(_moved(ids, group_id, offset))

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def add_value(
        self,
        group_id: str,
        name: str,
        width_mm: Optional[float] = None,
        height_mm: Optional[float] = None,
        key: Optional[str] = None,
        meta: Optional[dict] = None,
    ) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Værdien skal have et navn")
        _check_dimensions(width_mm, height_mm)
        return self._repo.create_value(
            group_id, name, width_mm=width_mm, height_mm=height_mm, key=key or None, meta=meta,
        )

    def update_value(self, value_id: str, **fields) -> None:
        if "name" in fields:
            fields["name"] = (fields["name"] or "").strip()
            if not fields["name"]:
                raise ValidationError("Værdien skal have et navn")
        _check_dimensions(fields.get("width_mm"), fields.get("height_mm"))
        self._repo.update_value(value_id, **fields)

    def set_value_enabled(self, value_id: str, enabled: bool) -> None:
        self._repo.set_value_enabled(value_id, enabled)

    def delete_value(self, value_id: str) -> None:
        self._repo.delete_value(value_id)

    def move_value(self, group: AttributeGroup, value_id: str, offset: int) -> None:
        self._repo.reorder_values(_moved([v.id for v in group.values], value_id, offset))


def _moved(ids: list[str], item_id: str, offset: int) -> list[str]:
    """
    ids with item_id moved by offset, clamped to the ends.

    Example:
        >>> _moved(["a", "b", "c"], "c", -1)
        ['a', 'c', 'b']
    """
    if item_id not in ids:
        raise NotFoundError(f"{item_id} findes ikke i rækkefølgen")
    ordered = [i for i in ids if i != item_id]
    position = min(max(ids.index(item_id) + offset, 0), len(ordered))
    ordered.insert(position, item_id)
    return ordered


def get_attribute_service() -> AttributeService:
    """
    Get or create an AttributeService instance.

    Uses state.get_service for session state persistence across reruns.
    Falls back to direct instantiation if state module unavailable.
    """
    try:
        from state import get_service
        return get_service('attribute_service', AttributeService.create_default)
    except ImportError:
        logger.debug("state module unavailable, creating new AttributeService instance")
        return AttributeService.create_default()
