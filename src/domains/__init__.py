"""Domain layer (ledger records, wire mapping, derived figures).

Domain modules should not depend on UI or on HTTP. Backend payloads arrive
as plain dicts and leave as plain dicts.
"""
