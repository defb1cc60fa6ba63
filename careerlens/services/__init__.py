"""CareerLens microservices.

- Analytics Service: anonymized collection, aggregation, dashboards,
  retention cleanup and export of career-recommendation events.
"""
