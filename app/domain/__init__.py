"""
Domain layer package.

Orders, balances and prices, the rules that settle one against the
others, and the ports the outside world must implement. Standard
library only: no framework imports and no IO.
"""
