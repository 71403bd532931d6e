"""Flask blueprints for the invoice dashboard.

``auth_routes`` serves the login and logout pages and ``dashboard_routes``
the ``/dashboard`` pages; both are registered in :mod:`app.__init__`.
"""
