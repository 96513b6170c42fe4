from __future__ import annotations

import csv
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

CATALOG_FILE = "ribbons.csv"


def _slug_id(s: str) -> str:
    s = s.strip().casefold()
    s = re.sub(r"[^a-z0-9]+", "-", s)
    return s.strip("-")


def _room_id(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", s.casefold())


@dataclass(frozen=True, slots=True)
class RibbonCost:
    # 0 means the ribbon cannot be bought with that currency.
    points: int = 0
    bits: int = 0

    @property
    def staff_only(self) -> bool:
        return not self.points and not self.bits

    def text(self) -> str:
        if self.staff_only:
            return "Staff-only"
        if self.points and self.bits:
            return f"{self.points} points or {self.bits} bits"
        if self.points:
            return f"{self.points} points"
        return f"{self.bits} bits"


@dataclass(frozen=True, slots=True)
class Ribbon:
    id: str
    name: str
    source: str
    width: int
    height: int
    points: int = 0
    bits: int = 0
    # room_id -> cost in that room, replacing `points` / `bits` there
    points_override: dict[str, int] = field(default_factory=dict)
    bits_override: dict[str, int] = field(default_factory=dict)

    def cost_in(self, room_id: str | None = None) -> RibbonCost:
        if room_id is None:
            return RibbonCost(points=self.points, bits=self.bits)
        return RibbonCost(
            points=self.points_override.get(room_id, self.points),
            bits=self.bits_override.get(room_id, self.bits),
        )

    @property
    def staff_only(self) -> bool:
        return self.cost_in().staff_only

    def cost_text(self, room_id: str | None = None) -> str:
        return self.cost_in(room_id).text()


@dataclass(frozen=True, slots=True)
class RibbonCatalog:
    """Unlockable ribbons per room, in file order."""

    by_room: dict[str, tuple[Ribbon, ...]]

    @staticmethod
    def from_rows(rows: list[tuple[str, Ribbon]]) -> "RibbonCatalog":
        build: dict[str, list[Ribbon]] = {}
        for room_id, ribbon in rows:
            ribbons = build.setdefault(room_id, [])
            if any(r.id == ribbon.id for r in ribbons):
                raise CatalogLoadError(f"Duplicate ribbon id in room {room_id}: {ribbon.id}")
            ribbons.append(ribbon)
        return RibbonCatalog(by_room={k: tuple(v) for k, v in build.items()})

    def ribbons_for(self, room_id: str) -> tuple[Ribbon, ...]:
        return self.by_room.get(room_id, ())

    def get(self, room_id: str, ribbon_id: str) -> Ribbon | None:
        return next((r for r in self.ribbons_for(room_id) if r.id == ribbon_id), None)


class CatalogLoadError(RuntimeError):
    pass


def _read_csv_rows(path: Path) -> list[list[str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            rows = [[c.strip() for c in row] for row in csv.reader(f)]
    except FileNotFoundError as e:
        raise CatalogLoadError(f"Catalog file not found: {path}") from e

    return [row for row in rows if any(row)]


def _int_cell(value: str, *, path: Path, column: str) -> int:
    if not value:
        return 0
    try:
        parsed = int(value)
    except ValueError as e:
        raise CatalogLoadError(f"Bad {column} value {value!r} in {path}") from e
    if parsed < 0:
        raise CatalogLoadError(f"Negative {column} value in {path}")
    return parsed


def _override_cell(value: str, *, path: Path, column: str) -> dict[str, int]:
    """Parse `room:amount;room:amount` into a per-room cost mapping."""

    out: dict[str, int] = {}
    for part in value.split(";"):
        if not part.strip():
            continue
        room, sep, amount = part.partition(":")
        if not sep or not _room_id(room):
            raise CatalogLoadError(f"Bad {column} entry {part!r} in {path}")
        out[_room_id(room)] = _int_cell(amount.strip(), path=path, column=column)
    return out


CATALOG_COLUMNS = ["room", "id", "name", "source", "width", "height", "points", "bits"]
OVERRIDE_COLUMNS = ["points_override", "bits_override"]


def load_ribbon_csv(path: Path) -> RibbonCatalog:
    rows = _read_csv_rows(path)
    if not rows:
        raise CatalogLoadError(f"Empty ribbon CSV: {path}")

    header = [c.casefold() for c in rows[0]]
    expected = CATALOG_COLUMNS
    # The override columns are optional but must come in order.
    optional = header[len(expected) :]
    if header[: len(expected)] != expected or optional != OVERRIDE_COLUMNS[: len(optional)]:
        raise CatalogLoadError(f"Unexpected header in {path}: {rows[0]}")

    out: list[tuple[str, Ribbon]] = []
    for row in rows[1:]:
        if len(row) < len(expected):
            continue
        room, rid, name, source = _room_id(row[0]), row[1], row[2], row[3]
        if not room or not name:
            continue
        if not rid:
            rid = _slug_id(name)
        extra = row[len(expected) :] + ["", ""]
        out.append(
            (
                room,
                Ribbon(
                    id=rid,
                    name=name,
                    source=source,
                    width=_int_cell(row[4], path=path, column="width"),
                    height=_int_cell(row[5], path=path, column="height"),
                    points=_int_cell(row[6], path=path, column="points"),
                    bits=_int_cell(row[7], path=path, column="bits"),
                    points_override=_override_cell(extra[0], path=path, column="points_override"),
                    bits_override=_override_cell(extra[1], path=path, column="bits_override"),
                ),
            )
        )

    return RibbonCatalog.from_rows(out)


def _fallback_catalog() -> RibbonCatalog:
    """Tiny built-in catalog used when no ribbons.csv is present."""

    rows = [
        ("lobby", Ribbon(id="bronze", name="Bronze Ribbon", source="https://example.invalid/bronze.png", width=40, height=40, points=50)),
        ("lobby", Ribbon(id="silver", name="Silver Ribbon", source="https://example.invalid/silver.png", width=40, height=40, points=150, bits=3000)),
        ("lobby", Ribbon(id="gold", name="Gold Ribbon", source="https://example.invalid/gold.png", width=40, height=40, bits=10000)),
        ("lobby", Ribbon(id="staff", name="Staff Ribbon", source="https://example.invalid/staff.png", width=40, height=40)),
    ]
    return RibbonCatalog.from_rows(rows)


def load_ribbon_catalog(*, root: Path) -> RibbonCatalog:
    # Default behavior: fall back to the built-in catalog when the file is missing.
    # You can force strict behavior by setting ROOMPAGES_STRICT_ASSETS=1.
    strict = os.getenv("ROOMPAGES_STRICT_ASSETS", "").strip().lower() in {"1", "true", "yes"}

    try:
        return load_ribbon_csv(root / "assets" / CATALOG_FILE)
    except CatalogLoadError:
        if strict:
            raise
        return _fallback_catalog()


_CATALOG: RibbonCatalog | None = None


def init_catalog(*, project_root: Path) -> RibbonCatalog:
    """Load the catalog once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _CATALOG
    if _CATALOG is None:
        _CATALOG = load_ribbon_catalog(root=project_root)
    return _CATALOG


def reset_catalog_for_tests() -> None:
    global _CATALOG
    _CATALOG = None


def get_catalog() -> RibbonCatalog:
    if _CATALOG is None:
        raise RuntimeError("Ribbon catalog not initialized. Call init_catalog() at startup.")
    return _CATALOG
