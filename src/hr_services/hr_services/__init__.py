"""HR Services package.

Feature modules (designations, employees, promotions) follow the same layering:
plain dataclass models, repository Protocols with MySQL implementations, and
services holding the business rules. Flask controllers stay thin.
"""
