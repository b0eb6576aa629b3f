"""auth/ -- Authentication and authorization package for the gallery service.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, web/, or gallery/.
api/ and gallery/ import from auth/, not the other way around.
"""
