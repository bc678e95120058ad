"""Core (UI-agnostic) RFC editing logic.

This package contains:
- row identity, RFC column classification and column ordering
- column filters over the unfiltered dataset
- the edit ledger and save/post reconciliation
- debounced autosave scheduling
- the REST client and the page-level session coordinator
- product summaries (pandas) and chart helpers (Altair -> Vega-Lite spec dict)
"""
