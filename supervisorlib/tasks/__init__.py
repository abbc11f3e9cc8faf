"""
Higher-level methods to reconcile supervisord programs with their desired state.

Each public function in this module should:

- perform a complete task, as needed by a script or user action
- avoid non-idempotent calls unless required by a prior state change
- probe current state itself rather than trusting a cached value
"""
