"""auditsys-lite: tamper-evident ledger for ticket-sale transactions."""
