"""
tests

restogate test-suite package (lets modules share helpers from `tests.conftest`).
"""
