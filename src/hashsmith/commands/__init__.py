"""
Command implementations for the hashsmith CLI.

Each module corresponds to a top-level CLI command:
- deploy:   Deploy a contract from its compiled artifact
- invoke:   Estimate gas and execute a state-changing call
- query:    Read-only calls and standalone gas estimates (call, estimate)
- logs:     Decode a contract's historical events from the mirror node
- decode:   Offline decoding of calldata, revert data and error lookups
- update:   Change selected fields of a multi-field configuration setter
"""
