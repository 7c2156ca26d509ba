"""
Use cases of the trading bounded context.

Also home to the sweep guard, the process-wide mutual exclusion
shared by scheduled and admin-triggered settlement sweeps.
"""
