"""
Chain Scheduler Test Suite.

- Persistence tests (run CRUD, one-active-run guard, ordering)
- Executor / Dispatcher step tests
- Recovery tests
- Service tests
"""
