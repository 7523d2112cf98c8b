"""Application services layer (session, ledger data operations).

Services coordinate the domain transformer and the HTTP transport. They should
avoid UI concerns.
"""
