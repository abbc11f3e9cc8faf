"""
Low-level APIs for fine-grained control of supervisord programs.

Each public function in this module should:

- perform a single action, idempotently if possible
- raise an exception on any failures
- accept program descriptors as arguments rather than reading ambient state

Each function also falls into one of two groups:

- getters (prefixed with `get_`, returns a value directly, does not modify state)
- actions (returns a `Result` object, may modify state)
"""
