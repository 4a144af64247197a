"""
Service layer.

Each service encapsulates the business logic and SQL of one domain so
API handlers stay thin.  ``zipcodes`` and ``availability_service``
hold the postcode normalisation and matching used across domains.
"""
