"""
Generic entity engine.

Entity schemas (schema.py) drive everything else: field coercion and form
controls (fields.py), foreign-key option sets (options.py), the table store
(store.py), loading and search (records.py), list rendering (listing.py) and
the per-entity panel lifecycle (panel.py). admin.py exposes panels over HTTP.
"""
