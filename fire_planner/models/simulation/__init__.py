"""
Monte Carlo FIRE simulation.

Key Components:
- protocols: Protocol interfaces for injectable randomness
- path_simulator: Year-by-year simulation of a single life path
- failure: Failure taxonomy and classification of finished paths
- result: Outcome, log and aggregate result models
- runner: Batch orchestration across worker threads
- export: CSV and JSON export of logged batches
"""
