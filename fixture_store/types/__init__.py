"""
The model layer persisted by adapters: pydantic models that know their primary key and track their own persistence
status, plus the collection type that queries return.
"""
