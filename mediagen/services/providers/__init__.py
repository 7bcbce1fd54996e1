"""Media generation provider implementations.

Each task provider implements the async task pattern:
  create task → poll status → download artifact to a local file
"""
