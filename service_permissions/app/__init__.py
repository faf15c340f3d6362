"""
Permissions Service package for the Access Layer.

This package answers whether a user may perform an action on a resource,
following the user's group memberships to the policies attached to those
groups. It provides:

- app.main: API surface for permission checks, catalog inspection and health.
- app.policies: Entity model, catalog lookup, resolution and matching.
- app.catalog: Loading catalogs from documents and swapping snapshots.
- app.authz: FastAPI guard that gates routes on a permission check.

Guidelines:
- Evaluation is a pure function of (user, resource, action, catalog).
- Catalogs are immutable snapshots; refreshes swap the snapshot, never mutate it.
- Absence of a matching grant is the only "deny"; lookups never raise.
"""
