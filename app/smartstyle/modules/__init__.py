"""
Feature modules live under this package.

Each module owns its tables. Screens for them are declared as entity schemas
in app.smartstyle.entities and rendered by the generic crud engine.
"""
