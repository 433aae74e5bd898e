"""
Dumpstack - Backup orchestration for self-hosted datastores

Snapshots, verifies, prunes and restores backups for container-hosted
datastore engines (PostgreSQL, TimescaleDB, MySQL, MongoDB, Redis, Vault).

Modules:
- config: Settings loaded from environment variables
- models: Providers, targets, artifacts and run results
- engines: Per-engine command builders and the provider registry
- services: Runner, compression, artifact store, verifier, pruner, coordinators
- utils: Validators, command templates, tool path resolution
- exceptions: Error taxonomy
"""

__version__ = "0.1.0"
__author__ = "Dumpstack Maintainers"
