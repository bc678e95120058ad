from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from core.autosave import AUTOSAVE_DELAY_SECONDS, AutosaveScheduler
from core.client import ApiResult, RfcApiClient
from core.filters import (
    DEFAULT_FILTERABLE_COLUMNS,
    ColumnFilters,
    apply_filters,
    filter_options,
    normalize_column_filters,
)
from core.ledger import EditLedger
from core.periods import next_month_and_year
from core.reconcile import (
    ReconcileStatus,
    ValidationError,
    changed_records,
    parse_rfc_number,
    reconcile_status,
    validate_post,
    validate_save,
)
from core.rows import Row, as_text, generate_columns, is_editable_rfc_column, row_key
from core.rows import rfc_columns as select_rfc_columns

logger = logging.getLogger(__name__)

NO_BRANCH = ""


class RfcSession:
    """Page-level owner of one RFC editing view.

    Holds the unfiltered rows of the current fetch, the edit ledger and the
    column filters. Every derived view (filtered rows, save/post eligibility,
    payloads) is recomputed from those by the pure engines.
    """

    def __init__(
        self,
        client: RfcApiClient,
        *,
        filterable_columns: Iterable[str] = DEFAULT_FILTERABLE_COLUMNS,
        branch_scoped: bool = True,
        autosave: bool = False,
        autosave_delay: float = AUTOSAVE_DELAY_SECONDS,
        timer_factory=threading.Timer,
    ) -> None:
        self.client = client
        self.filterable_columns = tuple(filterable_columns)
        self.branch_scoped = branch_scoped
        self.autosave_enabled = autosave

        month, year = next_month_and_year()
        self.branch: str = NO_BRANCH
        self.month: str = month
        self.year: str = year

        self.rows: List[Dict[str, Any]] = []
        self.columns: List[Dict[str, str]] = []
        self.rfc_columns: List[str] = []
        self.ledger = EditLedger.empty()
        self.filters: ColumnFilters = {}
        self.product_edits: Dict[str, str] = {}

        self.generation = 0
        self.loading = False
        self.saving = False
        self.posting = False
        self.last_error: Optional[str] = None

        self._lock = threading.RLock()
        self._autosave = AutosaveScheduler(self._autosave_fire, delay=autosave_delay, timer_factory=timer_factory)
        self._product_autosave = AutosaveScheduler(
            self._product_autosave_fire, delay=autosave_delay, timer_factory=timer_factory
        )

    # ---------- period ----------
    def select(self, branch: Optional[str], month: str, year: str) -> None:
        self.branch = (branch or NO_BRANCH) if self.branch_scoped else NO_BRANCH
        self.month = str(month).zfill(2)
        self.year = str(year)

    def period_ready(self) -> bool:
        if self.branch_scoped and not self.branch:
            return False
        return bool(self.month and self.year)

    # ---------- data ----------
    def load(self) -> ApiResult:
        if not self.period_ready():
            return ApiResult.failure("Select a branch, month and year first.")
        with self._lock:
            self.generation += 1
            generation = self.generation
            self.loading = True
        try:
            result = self.client.fetch(self.branch, self.month, self.year)
        finally:
            with self._lock:
                if generation == self.generation:
                    self.loading = False

        with self._lock:
            if generation != self.generation:
                logger.info("discarding stale fetch (generation %s, current %s)", generation, self.generation)
                return ApiResult.failure("Superseded by a newer request.")
            if result.ok:
                self._install(result.data)
                self.last_error = None
            else:
                self._install([])
                self.last_error = result.error
        return result

    def _install(self, rows: Sequence[Row]) -> None:
        self.rows = [dict(r) for r in rows]
        self.columns = generate_columns(self.rows)
        self.rfc_columns = select_rfc_columns(c["key"] for c in self.columns)
        self.ledger = EditLedger.empty()
        self._autosave.cancel()
        self.product_edits = {}
        self._product_autosave.cancel()

    def visible_rows(self) -> List[Dict[str, Any]]:
        return apply_filters(self.rows, self.filters)

    def set_filters(self, raw: Optional[Mapping[str, Iterable[object]]]) -> ColumnFilters:
        self.filters = normalize_column_filters(raw, filterable=self.filterable_columns)
        return self.filters

    def filter_defaults(self, column: str) -> List[str]:
        """Selected values of `column` that still occur in the current rows."""
        present = set(filter_options(self.rows, column))
        return [v for v in self.filters.get(column, ()) if v in present]

    def filter_choices(self, column: str, query: str = "") -> List[str]:
        """Options for a column filter, narrowed by the server's suggestions for `query`."""
        options = filter_options(self.rows, column)
        query = (query or "").strip()
        if not query:
            return options
        result = self.client.suggest(column, query)
        if result.ok:
            suggested = {as_text(s).strip() for s in result.data}
            return [o for o in options if o in suggested]
        logger.warning("suggestions for %s unavailable: %s", column, result.error)
        needle = query.lower()
        return [o for o in options if needle in o.lower()]

    # ---------- edits ----------
    def edit(self, row: Row, column: str, value: object) -> EditLedger:
        if not is_editable_rfc_column(column):
            raise KeyError(f"{column!r} is not an editable RFC column")
        with self._lock:
            self.ledger = self.ledger.set_cell_edit(row_key(row), column, value)
            ledger = self.ledger
        if self.autosave_enabled:
            self._autosave.schedule()
        return ledger

    def cell_value(self, row: Row, column: str) -> str:
        return self.ledger.get_cell_value(row, column, row.get(column))

    def status(self) -> ReconcileStatus:
        return reconcile_status(self.ledger, self.rows, self.rfc_columns)

    @property
    def busy(self) -> bool:
        return self.saving or self.posting

    # ---------- mutations ----------
    def save(self) -> ApiResult:
        if not self.period_ready():
            return ApiResult.failure("Select a branch, month and year first.")
        with self._lock:
            if self.busy:
                return ApiResult.failure("Another save or post is in progress.")
            try:
                records = validate_save(self.ledger, self.rows, self.rfc_columns)
            except ValidationError as exc:
                return ApiResult.failure(str(exc))
            self.saving = True
        try:
            result = self.client.save(self.branch, self.month, self.year, records)
        finally:
            self.saving = False
        return self._after_mutation(result)

    def post(self) -> ApiResult:
        if not self.period_ready():
            return ApiResult.failure("Select a branch, month and year first.")
        with self._lock:
            if self.busy:
                return ApiResult.failure("Another save or post is in progress.")
            try:
                snapshot = validate_post(self.ledger, self.rows, self.rfc_columns)
            except ValidationError as exc:
                return ApiResult.failure(str(exc))
            self.posting = True
        try:
            result = self.client.post(self.branch, self.month, self.year, snapshot)
        finally:
            self.posting = False
        return self._after_mutation(result)

    def _after_mutation(self, result: ApiResult) -> ApiResult:
        if not result.ok:
            self.last_error = result.error
            return result
        self._autosave.cancel()
        refreshed = self.load()
        if not refreshed.ok:
            logger.warning("refresh after mutation failed: %s", refreshed.error)
        return result

    # ---------- autosave ----------
    def schedule_autosave(self) -> None:
        self._autosave.schedule()

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    def _autosave_fire(self) -> Optional[ApiResult]:
        with self._lock:
            snapshot = self.ledger
            if self.busy:
                # A manual save/post owns the wire; try again after it lands.
                self._autosave.schedule()
                return None
            records = changed_records(snapshot, self.rows, self.rfc_columns)
            if not records:
                return None
            self.saving = True
        try:
            result = self.client.save(self.branch, self.month, self.year, records)
        finally:
            self.saving = False
        if not result.ok:
            self.last_error = result.error
            return result
        with self._lock:
            unchanged = self.ledger is snapshot
        if unchanged:
            self.load()
        else:
            self._autosave.schedule()
        return result

    # ---------- product summary ----------
    def edit_product_rfc(self, product: str, value: object) -> None:
        """Queue a product-level RFC; every product edit debounces into one autosave."""
        with self._lock:
            self.product_edits = {**self.product_edits, str(product): as_text(value)}
        self._product_autosave.schedule()

    @property
    def product_autosave_pending(self) -> bool:
        return self._product_autosave.pending

    def _product_autosave_fire(self) -> List[ApiResult]:
        with self._lock:
            pending = dict(self.product_edits)
            month, year = self.month, self.year
        results: List[ApiResult] = []
        for product, value in pending.items():
            result = self.client.save_product_rfc(product, parse_rfc_number(value), month, year)
            results.append(result)
            if not result.ok:
                self.last_error = result.error
                continue
            with self._lock:
                if self.product_edits.get(product) == value:
                    self.product_edits = {k: v for k, v in self.product_edits.items() if k != product}
        if results and all(r.ok for r in results) and not self.ledger:
            self.load()
        return results

    def close(self) -> None:
        self._autosave.cancel()
        self._product_autosave.cancel()
