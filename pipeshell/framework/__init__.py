"""Session-level wiring for the command engine.

- `pipeshell.framework.config`: YAML-backed session settings (ambient preferences,
  legal action sets, logging)
- `pipeshell.framework.session`: the concrete invocation context handed to runners

For the app-agnostic parameter and pipeline primitives, use `commandkit`.
"""
