"""
Faculty Letter Workflow: SQLAlchemy handle.

All model modules import ``db`` from here; the Flask app factory binds it
with ``db.init_app(app)``.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
