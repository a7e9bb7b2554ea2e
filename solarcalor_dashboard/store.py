"""
Configuration store.

DashboardConfig is an immutable value holding the admin-edited data the
engine consumes: KPI labels, manual KPI overrides, field mappings and the
widget layout. Edits return a new DashboardConfig. Persistence goes through
a KeyValueStore; writes are last-writer-wins with no locking or merging.

The JSON document shape is::

    {
        "kpiLabels":    {"business": {...}, "marketing": {...}},
        "kpiOverrides": {"business": {...}, "marketing": {...}},
        "mappings":     {"paid": {...}, "lp": {...}, ..., "mktDetail": {...}},
        "layout":       {"paid": [...], "lp": [...], "web": [...], "crm": [...]}
    }

Partial documents are accepted; missing parts take defaults. Unknown
top-level keys are carried along so an exported document imports back
unchanged.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Protocol

from .config import (
    CLV_KEY,
    CONFIG_KEY,
    DATASETS,
    DEFAULT_CLV_MULTIPLIER,
    DEFAULT_KPI_LABELS,
    DEFAULT_LAYOUT,
    DEFAULT_WEIGHTS,
    HEADERS_KEY,
    KPI_SCOPES,
    PERIOD_KEYS,
    ROWS_KEYS,
    WEIGHTS_KEY,
)
from .loaders.uploads import Upload
from .loaders.utils import safe_float
from .overrides import coerce_override
from .periods import PeriodSelector

logger = logging.getLogger(__name__)


class ConfigImportError(ValueError):
    """Raised when a configuration document cannot be applied."""


# ---------------------------------------------------------------------------
# Configuration value
# ---------------------------------------------------------------------------

def _default_labels() -> dict:
    return copy.deepcopy(DEFAULT_KPI_LABELS)


def _default_overrides() -> dict:
    return {scope: {} for scope in KPI_SCOPES}


def _default_mappings() -> dict:
    return {ds: {} for ds in DATASETS}


def _default_layout() -> dict:
    return copy.deepcopy(DEFAULT_LAYOUT)


def normalise_layout(layout: Any) -> dict[str, list[str]]:
    """Widget order per category.

    A legacy layout stored as one list applies to every category.
    Categories missing or holding an empty list get the default order.
    """
    if isinstance(layout, list):
        layout = {category: list(layout) for category in DEFAULT_LAYOUT}
    fixed = dict(layout) if isinstance(layout, dict) else {}
    for category, default_order in DEFAULT_LAYOUT.items():
        order = fixed.get(category)
        if not isinstance(order, list) or not order:
            fixed[category] = list(default_order)
    return fixed


def validate_document(data: Any) -> None:
    """Raise ConfigImportError unless ``data`` is a usable config document."""
    if not isinstance(data, dict):
        raise ConfigImportError("configuration must be a JSON object")

    for section in ("kpiLabels", "kpiOverrides", "mappings"):
        value = data.get(section)
        if value is None:
            continue
        if not isinstance(value, dict):
            raise ConfigImportError(f"'{section}' must be an object")
        for name, table in value.items():
            if table is not None and not isinstance(table, dict):
                raise ConfigImportError(f"'{section}.{name}' must be an object")

    for scope, table in (data.get("kpiLabels") or {}).items():
        for key, label in (table or {}).items():
            if label is not None and not isinstance(label, str):
                raise ConfigImportError(
                    f"label '{scope}.{key}' must be text, got {label!r}"
                )

    for ds, table in (data.get("mappings") or {}).items():
        for canonical, source in (table or {}).items():
            if source is not None and not isinstance(source, str):
                raise ConfigImportError(
                    f"mapping '{ds}.{canonical}' must name a column, got {source!r}"
                )

    layout = data.get("layout")
    if layout is not None and not isinstance(layout, (dict, list)):
        raise ConfigImportError("'layout' must be an object or a list")


@dataclass(frozen=True)
class DashboardConfig:
    """Labels, manual overrides, field mappings and layout, as one value.

    Treat the contained dicts as read-only; use the ``with_*`` methods to
    derive an edited copy.
    """

    kpi_labels: dict = field(default_factory=_default_labels)
    kpi_overrides: dict = field(default_factory=_default_overrides)
    mappings: dict = field(default_factory=_default_mappings)
    layout: dict = field(default_factory=_default_layout)
    extras: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict | None) -> "DashboardConfig":
        """Build from a (possibly partial) JSON document."""
        data = copy.deepcopy({} if data is None else data)
        validate_document(data)

        labels = data.pop("kpiLabels", None)
        if labels is None:
            labels = _default_labels()
        overrides = data.pop("kpiOverrides", None) or {}
        mappings = data.pop("mappings", None) or {}
        layout = data.pop("layout", None)
        if layout is None:
            layout = _default_layout()

        for scope in KPI_SCOPES:
            labels.setdefault(scope, {})
            overrides.setdefault(scope, {})
        for ds in DATASETS:
            mappings.setdefault(ds, {})

        return cls(
            kpi_labels=labels,
            kpi_overrides=overrides,
            mappings=mappings,
            layout=layout,
            extras=data,
        )

    def to_dict(self) -> dict:
        doc = {
            "kpiLabels": self.kpi_labels,
            "kpiOverrides": self.kpi_overrides,
            "mappings": self.mappings,
            "layout": self.layout,
            **self.extras,
        }
        return copy.deepcopy(doc)

    # -- reads -------------------------------------------------------------

    def label(self, scope: str, key: str) -> str | None:
        return (self.kpi_labels.get(scope) or {}).get(key) or None

    def override(self, scope: str, key: str) -> Any:
        """Raw stored manual override (may be None or malformed)."""
        return (self.kpi_overrides.get(scope) or {}).get(key)

    def mapping(self, dataset: str) -> dict[str, str]:
        return self.mappings.get(dataset) or {}

    def widget_order(self, category: str) -> list[str]:
        return normalise_layout(self.layout).get(category, [])

    # -- edits -------------------------------------------------------------

    def _with_entry(self, section: str, group: str, key: str, value: Any) -> "DashboardConfig":
        doc = self.to_dict()
        table = doc[section].get(group) or {}
        doc[section][group] = {**table, key: value}
        return DashboardConfig.from_dict(doc)

    def with_label(self, scope: str, key: str, label: str) -> "DashboardConfig":
        return self._with_entry("kpiLabels", scope, key, label)

    def with_override(self, scope: str, key: str, value: Any) -> "DashboardConfig":
        """Set a manual override; blank or non-numeric input clears it."""
        return self._with_entry("kpiOverrides", scope, key, coerce_override(value))

    def with_mapping(self, dataset: str, canonical: str, source: str) -> "DashboardConfig":
        """Map a canonical field to a source column; "" means same-named column."""
        return self._with_entry("mappings", dataset, canonical, source)

    def with_layout(self, category: str, order: list[str]) -> "DashboardConfig":
        doc = self.to_dict()
        doc["layout"] = {**normalise_layout(doc["layout"]), category: list(order)}
        return DashboardConfig.from_dict(doc)


def export_json(config: DashboardConfig) -> str:
    return json.dumps(config.to_dict(), indent=2, ensure_ascii=False)


def import_json(text: str) -> DashboardConfig:
    """Parse a config document; raises ConfigImportError if it is unusable."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ConfigImportError(f"invalid JSON: {exc}") from exc
    validate_document(data)
    return DashboardConfig.from_dict(data)


# ---------------------------------------------------------------------------
# Key-value persistence
# ---------------------------------------------------------------------------

class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class InMemoryStore:
    """Key-value store held in a dict; values are copied in and out."""

    def __init__(self, initial: dict | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        value = json.loads(raw)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)


class JsonFileStore:
    """One JSON file per key under a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            value = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable stored value for '%s', using default", key)
            return default
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(path)


# ---------------------------------------------------------------------------
# Dashboard store
# ---------------------------------------------------------------------------

class ConfigStore:
    """Loads and saves dashboard state through a KeyValueStore."""

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    # -- configuration -----------------------------------------------------

    def load(self) -> DashboardConfig:
        data = self.kv.get(CONFIG_KEY)
        if data is None:
            return DashboardConfig()
        try:
            return DashboardConfig.from_dict(data)
        except ConfigImportError as exc:
            logger.warning("Stored configuration rejected (%s); using defaults", exc)
            return DashboardConfig()

    def save(self, config: DashboardConfig) -> DashboardConfig:
        self.kv.set(CONFIG_KEY, config.to_dict())
        return config

    def export_json(self) -> str:
        return export_json(self.load())

    def import_json(self, text: str) -> DashboardConfig:
        """Apply an imported document as a whole, or keep the current one."""
        current = self.load()
        try:
            imported = import_json(text)
        except ConfigImportError as exc:
            logger.warning("Config import rejected, keeping previous configuration: %s", exc)
            return current
        logger.info("Imported configuration")
        return self.save(imported)

    # -- uploaded rows -----------------------------------------------------

    def load_rows(self, dataset: str, default: list[dict] | None = None) -> list[dict]:
        rows = self.kv.get(ROWS_KEYS[dataset])
        if not isinstance(rows, list):
            return list(default or [])
        return rows

    def save_rows(self, dataset: str, rows: list[dict]) -> None:
        self.kv.set(ROWS_KEYS[dataset], rows)

    def load_headers(self) -> dict[str, list[str]]:
        stored = self.kv.get(HEADERS_KEY)
        if not isinstance(stored, dict):
            stored = {}
        return {
            ds: list(stored[ds]) if isinstance(stored.get(ds), list) else []
            for ds in DATASETS
        }

    def save_upload(self, upload: Upload) -> None:
        """Replace a dataset's rows wholesale and remember its headers."""
        self.save_rows(upload.dataset, upload.rows)
        headers = self.load_headers()
        headers[upload.dataset] = list(upload.headers)
        self.kv.set(HEADERS_KEY, headers)
        logger.info("Stored %d '%s' rows", len(upload.rows), upload.dataset)

    # -- period and calculator settings ------------------------------------

    def load_period(self, today: date | None = None) -> PeriodSelector:
        data = {name: self.kv.get(key) for name, key in PERIOD_KEYS.items()}
        return PeriodSelector.from_dict(data, today)

    def save_period(self, selector: PeriodSelector) -> None:
        for name, key in PERIOD_KEYS.items():
            self.kv.set(key, getattr(selector, name))

    def load_weights(self) -> dict[str, float]:
        stored = self.kv.get(WEIGHTS_KEY)
        if not isinstance(stored, dict):
            return dict(DEFAULT_WEIGHTS)
        return {**DEFAULT_WEIGHTS, **stored}

    def save_weights(self, weights: dict[str, float]) -> None:
        self.kv.set(WEIGHTS_KEY, weights)

    def load_clv_multiplier(self) -> float:
        value = safe_float(self.kv.get(CLV_KEY))
        return DEFAULT_CLV_MULTIPLIER if value is None else value

    def save_clv_multiplier(self, value: float) -> None:
        self.kv.set(CLV_KEY, value)
