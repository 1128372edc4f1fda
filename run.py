"""
Entry point for running MarketDesk locally.

This module imports the application factory and starts the development
server when executed directly. In production a WSGI server such as
gunicorn should serve ``wsgi:app`` instead.
"""

from marketdesk import create_app, db

app = create_app()

if __name__ == "__main__":
    # Only create the database tables automatically in local
    # development. Production deployments run ``flask db upgrade``.
    with app.app_context():
        db.create_all()
    app.run(host="0.0.0.0", port=5000, debug=True, use_reloader=False)
