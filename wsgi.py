"""
WSGI entry point for the domain email-security scanner.

WSGI hosts (gunicorn, uWSGI, PythonAnywhere) import this module and look
for the ``app`` variable.  The development server can also be started by
running this file directly:

  export SCAN_MODE=offline
  python wsgi.py

The JSON API is then available under http://127.0.0.1:5000/api/v1/.
"""

from __future__ import annotations

from dmarcscan import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
