"""Service layer for streak business logic.

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Database)

- streak_engine: the ACTIVE/BROKEN/CONQUERED state machine
- day_boundary: the one place that decides which day an instant belongs to
- lapse_validator: per-user lapse checks and the background sweep
- badges_service: milestone derivation and awarding
- streaks_service / users_service: request-level orchestration

Services raise StreakError subclasses; routes map them to status codes.
"""
