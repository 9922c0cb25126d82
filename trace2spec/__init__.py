"""
Trace2Spec: behavioral specification inference from recorded web traces.

This system turns a recorded trace of a user's interaction with a web application
into screens, user journeys, data entities and business rules that a scaffolding
generator can use to rebuild the application's behavior.
"""

__version__ = "1.0.0"
__author__ = "Trace2Spec Team"
