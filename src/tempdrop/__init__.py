"""tempdrop: anonymous temporary file hosting.

Uploaded files get a short download URL and a delete token and are
reclaimed automatically once their expiration time passes.
"""

__version__ = "0.1.0"
