"""liftlog — workout tracking API.

Bearer-token authentication, per-request caller identity, and
ownership-checked, transactional storage of workouts and their entries.
"""

__version__ = "0.1.0"
