"""Chart payload rendering helpers.

The analysis layer computes chart geometry as DTOs; this package turns those
DTOs into JSON-ready payloads for the frontend charting library.
"""
