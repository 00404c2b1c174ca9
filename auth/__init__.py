"""
Auth package for the Shortener Platform.

Device-id based request scoping. The device id is an opaque string carried
in a request header; it is the only ownership credential a record has and
is never validated for shape.
"""
