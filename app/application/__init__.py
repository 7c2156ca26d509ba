"""
Application layer package.

Use cases for submitting, reading, closing and settling orders,
swapping currencies and adjusting balances. Each use case is a class
with an ``execute`` method and depends on domain ports only.
"""
