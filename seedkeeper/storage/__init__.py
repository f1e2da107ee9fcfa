"""
Storage layer: seed provisioning, schema creation, migrations and seed merge.

Modules:
    - assets: Read-only access to the bundled seed image and migration scripts
    - seed: Seed image provisioning
    - pragmas: Per-connection session settings
    - schema: Table definitions and the schema definer
    - sql_parser: Legacy and delimited migration script parsing
    - migrations: Versioned migration engine
    - merge: Seed merge on upgrade
    - db: DatabaseHelper lifecycle driver
"""
