"""Record stores (in-memory and DuckDB), vault ledger, event log, client secrets."""
