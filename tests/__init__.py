"""
Playground Runner Test Suite.

This package contains:
- unit/: Unit tests (in-memory worker, recording hosts)
- integration/: Command and CLI tests wired end to end
- fakes.py: Recording fakes of the editor-host collaborators
"""
